"""
Aggregate coverage result for one probe snapshot.
"""

import os
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Iterable, Optional

from .errors import DuplicateFileError
from .filters import FilterChain
from .source_file import SourceFile

DEFAULT_COMMAND_NAME = "linecov"


class Result:
    """An immutable set of SourceFile stats keyed by path.

    covered_percent weights each file by its number of relevant lines; it is
    not the mean of the per-file percentages.
    """

    def __init__(self, source_files: Iterable[SourceFile],
                 created_at: Optional[datetime] = None,
                 command_name: str = DEFAULT_COMMAND_NAME):
        files = list(source_files)
        seen = set()
        for source_file in files:
            if source_file.path in seen:
                raise DuplicateFileError(source_file.path)
            seen.add(source_file.path)

        self._files = tuple(files)
        self.created_at = created_at or datetime.now()
        self.command_name = command_name

        self._covered_lines = sum(len(f.covered_lines) for f in self._files)
        self._missed_lines = sum(len(f.missed_lines) for f in self._files)
        total = self._covered_lines + self._missed_lines
        self._covered_percent = (self._covered_lines / total * 100) if total else 100.0

    @classmethod
    def from_coverage(cls, coverage: Dict[str, list], **kwargs) -> "Result":
        """Build a Result from a probe snapshot of {path: line records}."""
        files = [
            SourceFile(os.path.abspath(path), records)
            for path, records in coverage.items()
        ]
        files.sort(key=lambda f: f.path)
        return cls(files, **kwargs)

    @property
    def files(self) -> tuple:
        return self._files

    source_files = files

    @property
    def filenames(self) -> list:
        return [f.path for f in self._files]

    @property
    def original_result(self):
        return MappingProxyType({f.path: f.coverage for f in self._files})

    @property
    def covered_percent(self) -> float:
        return self._covered_percent

    @property
    def covered_lines(self) -> int:
        return self._covered_lines

    @property
    def missed_lines(self) -> int:
        return self._missed_lines

    @property
    def total_lines(self) -> int:
        return self._covered_lines + self._missed_lines

    def filtered(self, filters) -> "Result":
        """Return a new Result holding only the files that pass every filter."""
        if not isinstance(filters, FilterChain):
            filters = FilterChain(filters)
        return Result(filters.filtered(self._files),
                      created_at=self.created_at,
                      command_name=self.command_name)

    def format(self, formatter, groups=None):
        return formatter.format(self, groups)

    def to_dict(self) -> dict:
        return {
            "command_name": self.command_name,
            "created_at": self.created_at.isoformat(),
            "covered_percent": round(self._covered_percent, 2),
            "covered_lines": self._covered_lines,
            "total_lines": self.total_lines,
            "files": [
                {
                    "filename": f.path,
                    "covered_percent": round(f.covered_percent, 2),
                    "covered_lines": list(f.covered_lines),
                    "missed_lines": list(f.missed_lines),
                }
                for f in self._files
            ],
        }

    def __len__(self):
        return len(self._files)

    def __iter__(self):
        return iter(self._files)

    def __repr__(self):
        return f"Result({len(self._files)} files, {self._covered_percent:.1f}%)"
