import threading
import time
from pathlib import Path

import pytest

from dune_tidy.exceptions import AnalyzerInvocationError
from dune_tidy.models import ToolchainHandle, ToolchainStatus
from dune_tidy.runner import AnalysisRunner


def _sources(root: Path, *names: str) -> list:
    paths = []
    for name in names:
        path = root / name
        path.write_text("int f() { return 0; }\n", encoding="utf-8")
        paths.append(path)
    return paths


def test_build_command(tmp_path: Path) -> None:
    runner = AnalysisRunner(analyzer="clang-tidy")

    command = runner.build_command(tmp_path / "compile_commands.json", "a,b", tmp_path / "x.cc")

    assert command == [
        "clang-tidy",
        f"-p={tmp_path / 'compile_commands.json'}",
        "-checks=a,b",
        "-header-filter=.*",
        str(tmp_path / "x.cc"),
    ]


def test_sections_follow_input_order(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "b.cc", "a_finding.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer))

    sections = list(runner.run(compile_commands, files, "misc-a,misc-b"))

    assert [section.path for section in sections] == files
    assert all(section.ok for section in sections)
    # A non-zero exit from the analyzer is a finding, not an invocation failure.
    assert [section.returncode for section in sections] == [0, 1]
    assert "checks: misc-a,misc-b" in sections[0].output
    assert f"-p={compile_commands}" in sections[0].output
    assert "-header-filter=.*" in sections[0].output
    assert "warning: fake finding" in sections[1].output


def test_run_is_lazy(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "a.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer))

    sections = runner.run(compile_commands, files, "misc-a")
    first = next(sections)
    sections.close()

    assert first.path == files[0]


def test_parallel_run_keeps_input_order(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "a_slow.cc", "b.cc", "c.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer), jobs=3)

    sections = list(runner.run(compile_commands, files, "misc-a"))

    assert [section.path for section in sections] == files


def test_toolchain_environment_is_passed_to_analyzer(
    tmp_path: Path, fake_analyzer: Path, compile_commands: Path
) -> None:
    files = _sources(tmp_path, "a.cc")
    handle = ToolchainHandle(
        products_dir=tmp_path,
        version="v10_0_0",
        status=ToolchainStatus.ACTIVE,
        environment={"FAKE_TOOLCHAIN": "clang-v10_0_0"},
    )
    runner = AnalysisRunner(toolchain=handle, analyzer=str(fake_analyzer))

    (section,) = runner.run(compile_commands, files, "misc-a")

    assert "toolchain: clang-v10_0_0" in section.output


def test_missing_executable_recorded_and_run_continues(tmp_path: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "a.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(tmp_path / "no-such-clang-tidy"))

    sections = list(runner.run(compile_commands, files, "misc-a"))

    assert len(sections) == 2
    assert all(isinstance(section.error, AnalyzerInvocationError) for section in sections)
    assert "could not start" in str(sections[0].error)
    assert sections[1].error.path == files[1]


def test_fail_fast_raises_first_invocation_error(tmp_path: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "a.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(tmp_path / "no-such-clang-tidy"), fail_fast=True)

    with pytest.raises(AnalyzerInvocationError) as excinfo:
        list(runner.run(compile_commands, files, "misc-a"))

    assert excinfo.value.path == files[0]


def test_signal_death_is_an_invocation_error(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "crash.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer))

    crashed, fine = runner.run(compile_commands, files, "misc-a")

    assert "terminated by signal" in str(crashed.error)
    assert fine.ok


def test_timeout_kills_analyzer(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "hang.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer), timeout=0.5)

    start = time.monotonic()
    hung, fine = runner.run(compile_commands, files, "misc-a")

    assert time.monotonic() - start < 30
    assert "timed out after 0.5s" in str(hung.error)
    assert fine.ok


def test_cancel_before_run_yields_nothing(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "a.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer))
    runner.cancel()

    assert list(runner.run(compile_commands, files, "misc-a")) == []
    assert runner.cancelled


def test_cancel_kills_in_flight_processes(tmp_path: Path, fake_analyzer: Path, compile_commands: Path) -> None:
    files = _sources(tmp_path, "hang.cc", "b.cc")
    runner = AnalysisRunner(analyzer=str(fake_analyzer), jobs=2)
    timer = threading.Timer(0.5, runner.cancel)

    start = time.monotonic()
    timer.start()
    try:
        sections = list(runner.run(compile_commands, files, "misc-a"))
    finally:
        timer.cancel()

    assert time.monotonic() - start < 30
    # The killed file never produces a partial section, so nothing after it is emitted either.
    assert sections == []
