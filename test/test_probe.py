import logging
import os
import runpy
import sys
import textwrap
import threading

import pytest

from linecov import LineProbe, Result
from linecov.probe import excluded_lines, executable_lines, line_records

SCRIPT = textwrap.dedent("""\
    def used():
        return 1


    def unused():
        return 2


    # comment
    used()
    x = 1  # LCOV_EXCL_LINE
""")


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "script.py"
    path.write_text(SCRIPT)
    return path


def test_executable_lines_include_nested_code():
    lines = executable_lines(SCRIPT, "script.py")
    assert {1, 2, 5, 6, 10, 11} <= lines
    assert not lines & {3, 4, 7, 8, 9}


def test_excluded_lines_markers():
    source = [
        "a = 1",
        "b = 2  # LCOV_EXCL_LINE",
        "# LCOV_EXCL_START",
        "c = 3",
        "# LCOV_EXCL_STOP",
        "d = 4",
    ]
    assert excluded_lines(source) == {2, 3, 4, 5}


def test_line_records_from_hits():
    records = line_records(SCRIPT, "script.py", {1: 1, 2: 1, 5: 1, 10: 1, 11: 1})
    assert len(records) == len(SCRIPT.splitlines())
    assert records[1] == 1
    assert records[2] is None
    assert records[5] == 0
    assert records[8] is None
    assert records[10] is None


def test_probe_records_executed_lines(script):
    probe = LineProbe()
    probe.start()
    try:
        runpy.run_path(str(script))
    finally:
        coverage = probe.snapshot()

    records = coverage[os.path.abspath(str(script))]
    assert len(records) == 11
    assert records[0] >= 1
    assert records[1] >= 1
    assert records[2] is None
    assert records[4] >= 1
    assert records[5] == 0
    assert records[8] is None
    assert records[9] >= 1
    assert records[10] is None

    result = Result.from_coverage(coverage)
    stat = [f for f in result.files if f.path == os.path.abspath(str(script))][0]
    assert stat.missed_lines == (6,)


def test_probe_records_other_threads(tmp_path):
    path = tmp_path / "worker.py"
    path.write_text("def work():\n    return 42\n")
    namespace = runpy.run_path(str(path))

    probe = LineProbe()
    probe.start()
    try:
        thread = threading.Thread(target=namespace["work"])
        thread.start()
        thread.join()
    finally:
        coverage = probe.snapshot()

    assert coverage[os.path.abspath(str(path))][1] == 1


def test_probe_skips_excluded_paths(script, tmp_path):
    probe = LineProbe(exclude_paths=[str(tmp_path)])
    probe.start()
    try:
        runpy.run_path(str(script))
    finally:
        coverage = probe.snapshot()
    assert os.path.abspath(str(script)) not in coverage


def test_probe_restores_previous_tracer(script):
    previous = sys.gettrace()
    probe = LineProbe()
    probe.start()
    assert probe.running
    probe.snapshot()
    assert not probe.running
    assert sys.gettrace() is previous


def test_unreadable_file_is_skipped_with_warning(script, caplog):
    probe = LineProbe()
    probe.start()
    try:
        runpy.run_path(str(script))
    finally:
        probe.stop()
    script.unlink()

    with caplog.at_level(logging.WARNING, logger="linecov.probe"):
        coverage = probe.snapshot()
    assert os.path.abspath(str(script)) not in coverage
    assert "Skipping coverage" in caplog.text


def test_snapshot_while_another_thread_is_running(tmp_path):
    path = tmp_path / "spinner.py"
    path.write_text(textwrap.dedent("""\
        def spin(started, done):
            n = 0
            while not done.is_set():
                n += 1
                started.set()
            return n
    """))
    namespace = runpy.run_path(str(path))
    started = threading.Event()
    done = threading.Event()

    probe = LineProbe()
    probe.start()
    thread = threading.Thread(target=namespace["spin"], args=(started, done))
    thread.start()
    try:
        started.wait(10)
        first = probe.snapshot()
        # The spinning frame keeps its tracer; nothing more is counted.
        second = probe.snapshot()
    finally:
        done.set()
        thread.join()

    key = os.path.abspath(str(path))
    assert first[key] == second[key]
    assert first[key][3] >= 1
