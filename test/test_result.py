import os

import pytest

from conftest import make_file
from linecov import DuplicateFileError, InvalidInputError, Result, StringFilter


def test_percent_is_weighted_by_relevant_lines():
    # 1/1 = 100% and 1/9 = 11.1%; mean would be 55.6%, weighted is 2/10.
    result = Result([
        make_file("/src/small.py", covered=1),
        make_file("/src/big.py", covered=1, missed=8),
    ])
    assert result.covered_percent == pytest.approx(20.0)
    assert result.covered_lines == 2
    assert result.missed_lines == 8
    assert result.total_lines == 10


def test_empty_result_is_fully_covered():
    assert Result([]).covered_percent == 100.0


def test_files_without_relevant_lines_do_not_dilute():
    result = Result([
        make_file("/src/a.py", covered=1, missed=1),
        make_file("/src/blank.py", never=5),
    ])
    assert result.covered_percent == pytest.approx(50.0)


def test_duplicate_paths_raise():
    with pytest.raises(DuplicateFileError) as exc:
        Result([make_file("/src/a.py", covered=1), make_file("/src/a.py", missed=1)])
    assert exc.value.path == "/src/a.py"


def test_from_coverage_normalizes_paths_and_detects_duplicates():
    path = os.path.abspath("pkg/mod.py")
    with pytest.raises(DuplicateFileError):
        Result.from_coverage({path: [1], "pkg/./mod.py": [0]})


def test_from_coverage_orders_by_path():
    result = Result.from_coverage({"/src/b.py": [1], "/src/a.py": [0]})
    assert result.filenames == ["/src/a.py", "/src/b.py"]
    assert len(result) == 2


def test_from_coverage_rejects_malformed_records():
    with pytest.raises(InvalidInputError):
        Result.from_coverage({"/src/a.py": None})


def test_filtered_returns_new_result_and_keeps_original():
    result = Result([
        make_file("/src/app/models/user.py", covered=1, missed=3),
        make_file("/src/lib/foo.py", covered=2),
    ])
    filtered = result.filtered([StringFilter("app/models")])

    assert filtered.filenames == ["/src/lib/foo.py"]
    assert filtered.covered_percent == 100.0
    assert result.covered_percent == pytest.approx(50.0)
    assert len(result) == 2
    assert filtered.created_at == result.created_at


def test_original_result_is_read_only():
    result = Result.from_coverage({"/src/a.py": [1, None]})
    assert result.original_result["/src/a.py"] == (1, None)
    with pytest.raises(TypeError):
        result.original_result["/src/b.py"] = (1,)


def test_format_delegates_to_formatter():
    calls = []

    class Recorder:
        def format(self, result, groups):
            calls.append((result, groups))
            return "done"

    result = Result([make_file("/src/a.py", covered=1)])
    assert result.format(Recorder(), {"All": list(result.files)}) == "done"
    assert calls[0][0] is result


def test_to_dict():
    result = Result([make_file("/src/a.py", covered=1, missed=1)], command_name="pytest")
    data = result.to_dict()
    assert data["command_name"] == "pytest"
    assert data["covered_percent"] == 50.0
    assert data["files"][0] == {
        "filename": "/src/a.py",
        "covered_percent": 50.0,
        "covered_lines": [1],
        "missed_lines": [2],
    }
