"""Run clang-tidy once per source file and collect a report section for each."""

from __future__ import annotations

import os
import subprocess
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set

from .exceptions import AnalyzerInvocationError
from .logging import get_logger
from .models import ReportSection, ToolchainHandle

logger = get_logger("runner")


class AnalysisRunner:
    """Pass-through aggregator around the clang-tidy executable.

    Findings are never interpreted. A file whose analyzer cannot be started,
    dies from a signal or times out gets an AnalyzerInvocationError recorded in
    its section; with `fail_fast` the first such error is raised instead.
    """

    def __init__(
        self,
        toolchain: ToolchainHandle | None = None,
        analyzer: str = "clang-tidy",
        header_filter: str = ".*",
        jobs: int = 1,
        timeout: Optional[float] = None,
        fail_fast: bool = False,
        base_env: Mapping[str, str] | None = None,
    ):
        self.toolchain = toolchain
        self.analyzer = analyzer
        self.header_filter = header_filter
        self.jobs = max(1, jobs)
        self.timeout = timeout
        self.fail_fast = fail_fast
        self.base_env = base_env
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._processes: Set[subprocess.Popen] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def build_command(self, compilation_database: Path, checks: str, path: Path) -> List[str]:
        return [
            self.analyzer,
            f"-p={compilation_database}",
            f"-checks={checks}",
            f"-header-filter={self.header_filter}",
            str(path),
        ]

    def environment(self) -> Dict[str, str]:
        env = dict(os.environ if self.base_env is None else self.base_env)
        if self.toolchain is not None:
            env.update(self.toolchain.environment)
        return env

    def run(self, compilation_database: Path, files: Iterable[Path], checks: str) -> Iterator[ReportSection]:
        """Yield one ReportSection per file, in the order given."""
        files = tuple(files)
        env = self.environment()

        if self.jobs == 1 or len(files) <= 1:
            try:
                for path in files:
                    section = self._analyze(compilation_database, checks, path, env)
                    if section is None:
                        return
                    yield self._checked(section)
            except KeyboardInterrupt:
                self.cancel()
                raise
            return

        with ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="dune-tidy") as pool:
            futures: List[Future] = [
                pool.submit(self._analyze, compilation_database, checks, path, env) for path in files
            ]
            try:
                for future in futures:
                    section = future.result()
                    if section is None:
                        return
                    yield self._checked(section)
            except KeyboardInterrupt:
                self.cancel()
                raise
            finally:
                if not all(future.done() for future in futures):
                    self.cancel()
                for future in futures:
                    future.cancel()

    def cancel(self) -> None:
        """Stop spawning analyzers and kill the ones still running."""
        self._cancelled.set()
        with self._lock:
            processes = list(self._processes)
        for process in processes:
            if process.poll() is None:
                logger.debug("Killing analyzer process %s", process.pid)
                process.kill()

    def _checked(self, section: ReportSection) -> ReportSection:
        if section.error is not None and self.fail_fast:
            raise section.error
        return section

    def _analyze(
        self, compilation_database: Path, checks: str, path: Path, env: Dict[str, str]
    ) -> ReportSection | None:
        if self._cancelled.is_set():
            return None

        command = self.build_command(compilation_database, checks, path)
        section = ReportSection(path=path)
        start = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=env,
            )
        except OSError as exc:
            section.error = AnalyzerInvocationError(path, f"could not start {self.analyzer}: {exc}")
            return section

        with self._lock:
            self._processes.add(process)
        if self._cancelled.is_set():
            process.kill()

        try:
            try:
                output, _ = process.communicate(timeout=self.timeout)
            except subprocess.TimeoutExpired:
                process.kill()
                output, _ = process.communicate()
                section.error = AnalyzerInvocationError(
                    path, f"{self.analyzer} timed out after {self.timeout:g}s"
                )
        finally:
            with self._lock:
                self._processes.discard(process)

        section.output = output or ""
        section.returncode = process.returncode
        section.duration_seconds = time.monotonic() - start

        if self._cancelled.is_set() and process.returncode is not None and process.returncode < 0:
            # Killed by cancel(): the section is incomplete and is not emitted.
            return None
        if section.error is None and process.returncode < 0:
            section.error = AnalyzerInvocationError(
                path, f"{self.analyzer} was terminated by signal {-process.returncode}"
            )

        logger.debug(
            "%s finished in %.2fs (exit status %s)", path, section.duration_seconds, process.returncode
        )
        return section
