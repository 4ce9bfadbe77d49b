"""
Filters decide which source files appear in a report, and groups bucket the
remaining files under names.

There are three ways to define a filter:

* a string matched against each file's path. add_filter("app/models")
  rejects every file under app/models.
* a predicate receiving the SourceFile and returning True when the file
  should be removed:

      add_filter(lambda f: os.path.basename(f.path) == "conftest.py")

* an instance of a Filter subclass (or any object with a passes() method).

Filter.passes() answers "keep this file?". Group membership uses the
opposite sense: a file belongs to a group when the group's filter does
NOT pass it, so add_group("Models", "app/models") collects the model files.
"""

from collections import OrderedDict
from typing import Callable, Iterable, List, Optional

from .errors import ArgumentError

OTHER_FILES = "Other Files"


class Filter:
    """Base class for filters. Subclasses implement passes()."""

    def __init__(self, filter_argument):
        self.filter_argument = filter_argument

    def passes(self, source_file) -> bool:
        raise NotImplementedError(
            f"{type(self).__name__} must implement passes(source_file)"
        )

    def __repr__(self):
        return f"{type(self).__name__}({self.filter_argument!r})"


class StringFilter(Filter):
    """Rejects files whose path contains the given substring."""

    def passes(self, source_file) -> bool:
        return self.filter_argument not in source_file.path


class PredicateFilter(Filter):
    """Rejects files for which the predicate returns a true value."""

    def passes(self, source_file) -> bool:
        return not self.filter_argument(source_file)


def is_filter(obj) -> bool:
    return isinstance(obj, Filter) or callable(getattr(obj, "passes", None))


def parse_filter(filter_argument=None, predicate: Optional[Callable] = None):
    """Resolve a string, predicate or filter object into a filter."""
    if is_filter(filter_argument):
        return filter_argument
    if isinstance(filter_argument, str):
        return StringFilter(filter_argument)
    if predicate is None and callable(filter_argument):
        predicate = filter_argument
    if predicate is not None:
        if not callable(predicate):
            raise ArgumentError(f"Filter predicate must be callable, got {predicate!r}")
        return PredicateFilter(predicate)
    raise ArgumentError("Please specify either a string, a predicate or a Filter to filter with")


class FilterChain:
    """Ordered filters; a file is kept only if every filter passes it."""

    def __init__(self, filters: Iterable = ()):
        self._filters: List = [parse_filter(f) for f in filters]

    def add(self, filter_argument=None, predicate: Optional[Callable] = None):
        filter_ = parse_filter(filter_argument, predicate)
        self._filters.append(filter_)
        return filter_

    def passes(self, source_file) -> bool:
        return all(f.passes(source_file) for f in self._filters)

    def filtered(self, files) -> list:
        result = list(files)
        for filter_ in self._filters:
            result = [source_file for source_file in result if filter_.passes(source_file)]
        return result

    def __iter__(self):
        return iter(self._filters)

    def __len__(self):
        return len(self._filters)


class GroupClassifier:
    """Ordered mapping of group name to filter."""

    def __init__(self):
        self._groups = OrderedDict()

    def add(self, name: str, filter_argument=None, predicate: Optional[Callable] = None):
        filter_ = parse_filter(filter_argument, predicate)
        self._groups[name] = filter_
        return filter_

    def grouped(self, files) -> "OrderedDict[str, list]":
        files = list(files)
        grouped = OrderedDict()
        grouped_paths = set()
        for name, filter_ in self._groups.items():
            grouped[name] = [source_file for source_file in files
                             if not filter_.passes(source_file)]
            grouped_paths.update(source_file.path for source_file in grouped[name])

        other_files = [source_file for source_file in files
                       if source_file.path not in grouped_paths]
        if other_files:
            grouped[OTHER_FILES] = other_files
        return grouped

    def names(self) -> list:
        return list(self._groups)

    def items(self):
        return self._groups.items()

    def __contains__(self, name):
        return name in self._groups

    def __getitem__(self, name):
        return self._groups[name]

    def __len__(self):
        return len(self._groups)
