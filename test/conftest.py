import pytest

from linecov import SourceFile


class FakeProbe:
    """Stands in for the line tracer; snapshot() returns whatever data holds."""

    def __init__(self, data=None):
        self.data = data if data is not None else {}
        self.starts = 0
        self.snapshots = 0

    def start(self):
        self.starts += 1

    def snapshot(self):
        self.snapshots += 1
        return {path: list(records) for path, records in self.data.items()}


@pytest.fixture
def fake_probe():
    return FakeProbe({
        "/src/app/models/user.py": [1, 1, None, 0],
        "/src/lib/foo.py": [None, 3, 3],
    })


def make_file(path, covered=0, missed=0, never=0):
    return SourceFile(path, [1] * covered + [0] * missed + [None] * never)
