"""
linecov: line coverage reporting with filters and groups.

    import linecov

    linecov.start(lambda cov: (
        cov.add_filter("/tests/"),
        cov.add_group("Models", "app/models"),
    ))
    ...
    linecov.report()

The module-level functions drive linecov.default_session; create your own
CoverageSession to keep state explicit.
"""

from .errors import (
    ArgumentError,
    CoverageError,
    DuplicateFileError,
    FormatterNotConfiguredError,
    InvalidInputError,
    NoActiveSessionError,
)
from .filters import (
    OTHER_FILES,
    Filter,
    FilterChain,
    GroupClassifier,
    PredicateFilter,
    StringFilter,
    parse_filter,
)
from .formatters import CoberturaFormatter, MultiFormatter, SimpleFormatter
from .lines import NOT_RELEVANT, Line, LineStatus, classify_line
from .probe import LineProbe
from .result import Result
from .session import CoverageSession, SessionState, install_exit_hook
from .source_file import SourceFile

__version__ = "0.1.0"

default_session = CoverageSession()
default_session.formatter = SimpleFormatter()
install_exit_hook(default_session)


def start(configure=None):
    default_session.start(configure)


def configure(callback):
    default_session.configure(callback)


def add_filter(filter_argument=None, predicate=None):
    return default_session.add_filter(filter_argument, predicate)


def add_group(name, filter_argument=None, predicate=None):
    return default_session.add_group(name, filter_argument, predicate)


def set_formatter(formatter):
    default_session.formatter = formatter


def result():
    return default_session.result()


def report(result=None):
    return default_session.report(result)


def at_exit(hook=None):
    return default_session.at_exit(hook)
