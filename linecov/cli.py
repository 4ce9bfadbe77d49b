"""
Run a Python program under line coverage and report the result.

Usage:
  linecov app.py arg1 arg2                  # Run a script, print the summary
  linecov -m pytest -q tests/               # Run a module; options after it go to the module
  linecov --filter /tests/ -m pytest        # Reject files whose path contains /tests/
  linecov --group Models=app/models app.py  # Group files under app/models as "Models"
  linecov --xml coverage.xml app.py         # Also write a Cobertura XML report
  linecov --fail-under 90 -m pytest         # Exit 1 when coverage is below 90%

Exit code is the program's own exit code, or 1 if the coverage gate fails.
"""

import argparse
import logging
import runpy
import sys
import sysconfig
import traceback
from pathlib import Path

from .errors import CoverageError
from .formatters import CoberturaFormatter, MultiFormatter, SimpleFormatter
from .session import CoverageSession

logger = logging.getLogger(__name__)

LIBRARY_PATH_KEYS = ("stdlib", "platstdlib", "purelib", "platlib")
VALUE_OPTIONS = {"--filter", "--group", "--xml", "--source-root", "--fail-under"}


def setup_logging(verbose: bool):
    if not verbose:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root = logging.getLogger("linecov")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def parse_group(value: str):
    name, sep, substring = value.partition("=")
    if not sep or not name or not substring:
        raise argparse.ArgumentTypeError(f"expected NAME=SUBSTRING, got {value!r}")
    return name, substring


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linecov",
        usage="%(prog)s [options] (script | -m module) [args ...]",
        epilog="Everything after the script or -m module is passed to the program.",
        description="Run a Python program and report which lines were executed",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="SUBSTRING",
        help="Leave out files whose path contains SUBSTRING (repeatable)"
    )
    parser.add_argument(
        "--group",
        action="append",
        default=[],
        type=parse_group,
        metavar="NAME=SUBSTRING",
        help="Report files whose path contains SUBSTRING under NAME (repeatable)"
    )
    parser.add_argument(
        "--include-library",
        action="store_true",
        help="Keep standard library and site-packages files in the report"
    )
    parser.add_argument("--xml", help="Also write a Cobertura XML report to this path")
    parser.add_argument("--source-root", default=".", help="Paths in the report are shown relative to this")
    parser.add_argument("--fail-under", type=float, help="Exit 1 if total coverage is below this percentage")
    parser.add_argument("--verbose", action="store_true", help="Log coverage lifecycle to stderr")
    return parser


def split_command(argv: list):
    """Split argv into linecov's own options and the command line to run."""
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "-m" or not arg.startswith("-"):
            return argv[:i], argv[i:]
        i += 2 if arg in VALUE_OPTIONS else 1
    return argv, []


def configure_session(session: CoverageSession, args):
    source_root = Path(args.source_root).resolve()

    if not args.include_library:
        library_paths = {sysconfig.get_paths()[key] for key in LIBRARY_PATH_KEYS}
        for path in sorted(library_paths):
            session.add_filter(path)
    for substring in args.filter:
        session.add_filter(substring)
    for name, substring in args.group:
        session.add_group(name, substring)

    formatters = [SimpleFormatter(source_root=source_root)]
    if args.xml:
        formatters.append(CoberturaFormatter(args.xml, source_root=source_root))
    session.formatter = formatters[0] if len(formatters) == 1 else MultiFormatter(formatters)


def run_program(args) -> int:
    """Run the target program in this interpreter and return its exit code."""
    try:
        if args.module:
            sys.argv = [args.module] + args.args
            runpy.run_module(args.module, run_name="__main__", alter_sys=True)
        else:
            sys.argv = [args.program] + args.args
            sys.path.insert(0, str(Path(args.program).resolve().parent))
            runpy.run_path(args.program, run_name="__main__")
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        print(e.code, file=sys.stderr)
        return 1
    except Exception:
        traceback.print_exc()
        return 1
    return 0


def check_gate(covered_percent: float, fail_under: float) -> bool:
    if covered_percent >= fail_under:
        print(f"✓ Coverage {covered_percent:.1f}% meets the {fail_under:.1f}% requirement")
        return True
    print(f"✗ Coverage {covered_percent:.1f}% is below the {fail_under:.1f}% requirement "
          f"(-{fail_under - covered_percent:.1f}%)")
    return False


def main(argv=None) -> int:
    parser = build_parser()
    own_args, command = split_command(sys.argv[1:] if argv is None else list(argv))
    args = parser.parse_args(own_args)

    if not command:
        parser.error("nothing to run: give a script or -m module")
    if command[0] == "-m":
        if len(command) < 2:
            parser.error("-m requires a module name")
        args.module, args.program, args.args = command[1], None, command[2:]
    else:
        args.module, args.program, args.args = None, command[0], command[1:]

    setup_logging(args.verbose)

    session = CoverageSession(command_name=args.module or args.program)
    try:
        configure_session(session, args)
        session.start()
        exit_code = run_program(args)
        result = session.result()
        session.report(result)
        filtered = result.filtered(session.filters)
    except CoverageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.fail_under is not None and not check_gate(filtered.covered_percent, args.fail_under):
        return exit_code or 1
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
