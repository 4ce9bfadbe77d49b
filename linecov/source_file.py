"""
Coverage statistics for a single source file.
"""

from collections.abc import Mapping, Sequence
from typing import List, Optional

from .errors import InvalidInputError
from .lines import Line, LineStatus, classify_line


def load_source_file(filepath: str) -> list:
    """Load source file lines."""
    try:
        with open(filepath, encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError):
        return []


class SourceFile:
    """One file's raw line records plus the statistics derived from them.

    Line numbers are 1-based positions in the record sequence. The derived
    line lists and percentage are computed once, at construction.
    """

    def __init__(self, path: str, line_records):
        if (not isinstance(line_records, Sequence)
                or isinstance(line_records, (str, bytes, bytearray, Mapping))):
            raise InvalidInputError(
                f"Coverage data for {path} must be a sequence of line records, "
                f"got {type(line_records).__name__}"
            )
        self._path = path
        self._coverage = tuple(line_records)

        covered, missed, never = [], [], []
        for line_no, record in enumerate(self._coverage, 1):
            try:
                status = classify_line(record)
            except InvalidInputError as e:
                raise InvalidInputError(f"{path}:{line_no}: {e}") from e
            if status is LineStatus.COVERED:
                covered.append(line_no)
            elif status is LineStatus.MISSED:
                missed.append(line_no)
            else:
                never.append(line_no)

        self._covered_lines = tuple(covered)
        self._missed_lines = tuple(missed)
        self._never_lines = tuple(never)
        self._relevant_lines = tuple(sorted(covered + missed))
        if self._relevant_lines:
            self._covered_percent = len(covered) / len(self._relevant_lines) * 100
        else:
            self._covered_percent = 100.0
        self._src: Optional[List[str]] = None

    @classmethod
    def create(cls, path: str, line_records) -> "SourceFile":
        return cls(path, line_records)

    @property
    def path(self) -> str:
        return self._path

    @property
    def filename(self) -> str:
        return self._path

    @property
    def coverage(self) -> tuple:
        return self._coverage

    @property
    def covered_lines(self) -> tuple:
        return self._covered_lines

    @property
    def missed_lines(self) -> tuple:
        return self._missed_lines

    @property
    def never_lines(self) -> tuple:
        return self._never_lines

    @property
    def relevant_lines(self) -> tuple:
        return self._relevant_lines

    @property
    def lines_of_code(self) -> int:
        return len(self._relevant_lines)

    @property
    def covered_percent(self) -> float:
        return self._covered_percent

    @property
    def src(self) -> List[str]:
        if self._src is None:
            self._src = load_source_file(self._path)
        return self._src

    @property
    def lines(self) -> List[Line]:
        """Each line record paired with its source text."""
        src = self.src
        return [
            Line(line_no, record, src[line_no - 1] if line_no <= len(src) else "")
            for line_no, record in enumerate(self._coverage, 1)
        ]

    def line(self, line_no: int) -> Line:
        if line_no < 1 or line_no > len(self._coverage):
            raise IndexError(f"{self._path} has no line {line_no}")
        src = self.src
        return Line(line_no, self._coverage[line_no - 1],
                    src[line_no - 1] if line_no <= len(src) else "")

    def __eq__(self, other):
        if not isinstance(other, SourceFile):
            return NotImplemented
        return self._path == other._path

    def __hash__(self):
        return hash(self._path)

    def __repr__(self):
        return f"SourceFile({self._path!r}, {self._covered_percent:.1f}%)"
