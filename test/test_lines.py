import pytest

from linecov import InvalidInputError, Line, LineStatus, NOT_RELEVANT, classify_line


def test_not_relevant_is_never():
    assert classify_line(NOT_RELEVANT) is LineStatus.NEVER


def test_zero_hits_is_missed():
    assert classify_line(0) is LineStatus.MISSED


@pytest.mark.parametrize("hits", [1, 2, 1000])
def test_positive_hits_are_covered(hits):
    assert classify_line(hits) is LineStatus.COVERED


@pytest.mark.parametrize("record", [-1, 1.5, "3", True, [1]])
def test_invalid_records_are_rejected(record):
    with pytest.raises(InvalidInputError):
        classify_line(record)


def test_line_status_flags():
    line = Line(3, 0, "x = 1")
    assert line.missed
    assert not line.covered
    assert not line.never
    assert Line(4, None).never
    assert Line(5, 7).covered
