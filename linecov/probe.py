"""
Line execution probe built on sys.settrace.

The probe counts 'line' trace events per file while running. snapshot()
turns those counts into one record per physical source line:

- None for lines with no executable code
- 0 for executable lines that never ran
- the hit count otherwise

Respects LCOV exclusion markers in the source:
- LCOV_EXCL_LINE: Exclude single line
- LCOV_EXCL_START/STOP: Exclude region
"""

import dis
import logging
import os
import sys
import threading
import tokenize
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

EXCL_LINE = "LCOV_EXCL_LINE"
EXCL_START = "LCOV_EXCL_START"
EXCL_STOP = "LCOV_EXCL_STOP"

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def read_source(filepath: str) -> str:
    with tokenize.open(filepath) as f:
        return f.read()


def executable_lines(source: str, filepath: str) -> Set[int]:
    """Line numbers that hold executable code, from every nested code object."""
    lines = set()
    code_objects = [compile(source, filepath, "exec", dont_inherit=True)]
    while code_objects:
        code = code_objects.pop()
        for _, line_no in dis.findlinestarts(code):
            if line_no is not None and line_no > 0:
                lines.add(line_no)
        for const in code.co_consts:
            if hasattr(const, "co_code"):
                code_objects.append(const)
    return lines


def excluded_lines(source_lines: List[str]) -> Set[int]:
    excluded = set()
    in_excl_region = False
    for line_no, text in enumerate(source_lines, 1):
        if EXCL_START in text:
            in_excl_region = True
        if in_excl_region or EXCL_LINE in text:
            excluded.add(line_no)
        if EXCL_STOP in text:
            in_excl_region = False
    return excluded


def line_records(source: str, filepath: str, hits: Dict[int, int]) -> list:
    """Build the per-line record list for one file."""
    source_lines = source.splitlines()
    executable = executable_lines(source, filepath)
    excluded = excluded_lines(source_lines)

    records = []
    for line_no in range(1, len(source_lines) + 1):
        if line_no in excluded:
            records.append(None)
        elif line_no in hits:
            records.append(hits[line_no])
        elif line_no in executable:
            records.append(0)
        else:
            records.append(None)
    return records


class LineProbe:
    """Counts executed lines in every real source file while running."""

    def __init__(self, exclude_paths: Optional[Iterable[str]] = None):
        if exclude_paths is None:
            exclude_paths = [PACKAGE_DIR]
        self.exclude_paths = [os.path.abspath(p) for p in exclude_paths]
        self.running = False
        self._lock = threading.RLock()
        self._hits: Dict[str, Dict[int, int]] = defaultdict(lambda: defaultdict(int))
        self._traced: Dict[str, bool] = {}
        self._previous_trace = None
        self._previous_thread_trace = None

    def _should_trace(self, filename: str) -> bool:
        should = self._traced.get(filename)
        if should is None:
            if not filename or filename.startswith("<"):
                should = False
            else:
                path = os.path.abspath(filename)
                should = not any(
                    path == excl or path.startswith(excl + os.sep)
                    for excl in self.exclude_paths
                )
            self._traced[filename] = should
        return should

    def _trace(self, frame, event, arg):
        if event != "call":
            return None
        if not self._should_trace(frame.f_code.co_filename):
            return None
        return self._trace_lines

    def _trace_lines(self, frame, event, arg):
        # Frames entered before stop() keep this tracer; ignore them afterwards.
        if event == "line":
            with self._lock:
                if self.running:
                    self._hits[frame.f_code.co_filename][frame.f_lineno] += 1
        return self._trace_lines

    def start(self):
        if self.running:
            return
        self._hits.clear()
        self._previous_trace = sys.gettrace()
        self._previous_thread_trace = getattr(threading, "gettrace", lambda: None)()
        threading.settrace(self._trace)
        sys.settrace(self._trace)
        self.running = True
        logger.debug("Line probe started")

    def stop(self):
        with self._lock:
            if not self.running:
                return
            self.running = False
        sys.settrace(self._previous_trace)
        threading.settrace(self._previous_thread_trace)
        logger.debug("Line probe stopped")

    def snapshot(self) -> Dict[str, list]:
        """Stop recording and return {absolute path: line records}."""
        self.stop()
        # The same file may be reached through two spellings of its path.
        merged: Dict[str, Dict[int, int]] = defaultdict(lambda: defaultdict(int))
        with self._lock:
            recorded = {filename: dict(hits) for filename, hits in self._hits.items()}
        for filename, hits in recorded.items():
            file_hits = merged[os.path.abspath(filename)]
            for line_no, count in hits.items():
                file_hits[line_no] += count

        coverage = {}
        for path, hits in merged.items():
            try:
                source = read_source(path)
                coverage[path] = line_records(source, path, hits)
            except (OSError, SyntaxError, ValueError) as e:
                logger.warning("Skipping coverage for %s: %s", path, e)
        logger.info("Snapshot holds coverage for %d files", len(coverage))
        return coverage
