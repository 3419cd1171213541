import pytest

from copyfiles.errors import ClipboardWriteError
from copyfiles.fs import LocalFilesystem
from copyfiles.views import ViewRegistry


class FakeClipboard:
    def __init__(self, fail_with=None):
        self.writes = []
        self.fail_with = fail_with

    def write(self, text):
        if self.fail_with:
            raise ClipboardWriteError(f"Failed to copy to clipboard: {self.fail_with}")
        self.writes.append(text)


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, title, message):
        self.messages.append((title, message))

    def titled(self, title):
        return [m for t, m in self.messages if t == title]


@pytest.fixture
def tree(tmp_path):
    """
    tmp/
      A.txt          "X"
      F/a            "1"
      F/b            "2"
      G/sub/deep.py  "deep"
      G/top.py       "top"
      notes.md       "# notes"
      test_one.py    "one"
    """
    (tmp_path / "A.txt").write_bytes(b"X")
    (tmp_path / "F").mkdir()
    (tmp_path / "F" / "a").write_bytes(b"1")
    (tmp_path / "F" / "b").write_bytes(b"2")
    (tmp_path / "G" / "sub").mkdir(parents=True)
    (tmp_path / "G" / "sub" / "deep.py").write_bytes(b"deep")
    (tmp_path / "G" / "top.py").write_bytes(b"top")
    (tmp_path / "notes.md").write_bytes(b"# notes")
    (tmp_path / "test_one.py").write_bytes(b"one")
    return tmp_path


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def registry(clipboard, notifier):
    return ViewRegistry(LocalFilesystem(), clipboard, notifier)
