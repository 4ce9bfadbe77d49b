"""
Coverage session lifecycle.

A session moves through UNINITIALIZED -> RUNNING -> STOPPED. start() begins
recording; the first result() call while RUNNING takes the one probe
snapshot for the run, caches it and stops. Later result() calls return the
cached Result, so an exit hook and any other consumer see the same data.
"""

import atexit
import logging
from enum import Enum
from typing import Callable, Optional

from .errors import FormatterNotConfiguredError, NoActiveSessionError
from .filters import FilterChain, GroupClassifier
from .probe import LineProbe
from .result import DEFAULT_COMMAND_NAME, Result

logger = logging.getLogger(__name__)


class SessionState(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    STOPPED = "stopped"


def _noop():
    pass


class CoverageSession:
    """Owns the probe, the filter chain, the groups and the cached Result."""

    def __init__(self, probe=None, command_name: str = DEFAULT_COMMAND_NAME):
        self.probe = probe if probe is not None else LineProbe()
        self.command_name = command_name
        self.filters = FilterChain()
        self.groups = GroupClassifier()
        self.state = SessionState.UNINITIALIZED
        self._formatter = None
        self._result: Optional[Result] = None
        self._at_exit: Optional[Callable] = None

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    @property
    def formatter(self):
        if self._formatter is None:
            raise FormatterNotConfiguredError(
                "No formatter configured. Please specify a formatter using "
                "session.formatter = linecov.formatters.SimpleFormatter()"
            )
        return self._formatter

    @formatter.setter
    def formatter(self, formatter):
        self._formatter = formatter

    def configure(self, callback: Callable):
        callback(self)

    def add_filter(self, filter_argument=None, predicate: Optional[Callable] = None):
        """Add a filter to the processing chain.

        filter_argument may be a path substring to reject, a predicate that
        returns True for files to remove, or a Filter instance.
        """
        return self.filters.add(filter_argument, predicate)

    def add_group(self, name: str, filter_argument=None, predicate: Optional[Callable] = None):
        """Define a group holding the files the given filter would reject."""
        return self.groups.add(name, filter_argument, predicate)

    def filtered(self, files) -> list:
        return self.filters.filtered(files)

    def grouped(self, files):
        return self.groups.grouped(files)

    def start(self, configure: Optional[Callable] = None):
        self.probe.start()
        if configure is not None:
            self.configure(configure)
        self._result = None
        self._at_exit = None
        self.state = SessionState.RUNNING
        logger.debug("Coverage session started")

    def result(self) -> Result:
        if self.state is SessionState.RUNNING:
            try:
                snapshot = self.probe.snapshot()
                self._result = Result.from_coverage(snapshot, command_name=self.command_name)
            finally:
                self.state = SessionState.STOPPED
            logger.debug("Coverage session stopped with %d files", len(self._result))
            return self._result

        if self._result is None:
            raise NoActiveSessionError(
                "No coverage result available. Call start() first, and check that "
                "the last snapshot did not fail"
            )
        return self._result

    def report(self, result: Optional[Result] = None):
        """Filter and group the result, then hand both to the formatter."""
        formatter = self.formatter
        if result is None:
            result = self.result()
        filtered = result.filtered(self.filters)
        groups = self.grouped(filtered.files)
        return filtered.format(formatter, groups)

    def at_exit(self, hook: Optional[Callable] = None) -> Callable:
        if not self.running:
            return _noop
        if hook is not None:
            self._at_exit = hook
        if self._at_exit is None:
            self._at_exit = lambda: self.report(self.result())
        return self._at_exit


def install_exit_hook(session: CoverageSession) -> Callable:
    """Register the session's exit hook to run when the interpreter exits."""
    def run_exit_hook():
        session.at_exit()()

    atexit.register(run_exit_hook)
    return run_exit_hook
