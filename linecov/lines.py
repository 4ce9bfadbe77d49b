"""
Per-line classification of raw probe records.

A line record is either NOT_RELEVANT (no executable code on that line) or a
non-negative hit count.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidInputError

NOT_RELEVANT = None


class LineStatus(Enum):
    NEVER = "never"
    MISSED = "missed"
    COVERED = "covered"


def validate_record(record) -> None:
    if record is NOT_RELEVANT:
        return
    if isinstance(record, bool) or not isinstance(record, int) or record < 0:
        raise InvalidInputError(
            f"Line record must be None or a non-negative integer, got {record!r}"
        )


def classify_line(record: Optional[int]) -> LineStatus:
    """Classify one line record as never (not relevant), missed or covered."""
    validate_record(record)
    if record is NOT_RELEVANT:
        return LineStatus.NEVER
    if record == 0:
        return LineStatus.MISSED
    return LineStatus.COVERED


@dataclass(frozen=True)
class Line:
    line_no: int
    coverage: Optional[int]
    source: str = ""

    @property
    def status(self) -> LineStatus:
        return classify_line(self.coverage)

    @property
    def covered(self) -> bool:
        return self.status is LineStatus.COVERED

    @property
    def missed(self) -> bool:
        return self.status is LineStatus.MISSED

    @property
    def never(self) -> bool:
        return self.status is LineStatus.NEVER
