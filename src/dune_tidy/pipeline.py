"""High-level lint pipeline: validate, activate clang, find sources, run clang-tidy."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from .config import TidyConfig
from .exceptions import CompilationDatabaseNotFoundError, DuneTidyError, UsageError
from .logging import get_logger
from .models import SourceFileList, ToolchainHandle
from .report_manager import ReportManager
from .rules import DEFAULT_CATALOG, RuleSetCatalog
from .runner import AnalysisRunner
from .targets import TargetResolver
from .toolchain import ToolchainResolver

logger = get_logger("pipeline")

USAGE = """\
Usage: dune-tidy <full pathname of compile_commands.json for your build> <file or directory to examine>

Given a file, it will apply a linter (clang-tidy) to that file.

Given a directory, it will apply clang-tidy to all the source (*.cc) files
in that directory as well as all of its subdirectories.

compile_commands.json is a file which dune-tidy needs to forward to
clang-tidy. It can be automatically produced in a cmake build; to get
cmake to do this, add the following line to your CMakeLists.txt file:

set(CMAKE_EXPORT_COMPILE_COMMANDS ON CACHE BOOL "Set to ON to produce a compile_commands.json file which clang-tidy can use" FORCE)

More detail can be found in
https://cmake.org/cmake/help/v3.5/variable/CMAKE_EXPORT_COMPILE_COMMANDS.html
"""


class PipelineState(str, Enum):
    START = "start"
    ARGS_VALIDATED = "args_validated"
    TOOLCHAIN_ACTIVE = "toolchain_active"
    TARGET_RESOLVED = "target_resolved"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


RunnerFactory = Callable[[ToolchainHandle], AnalysisRunner]


class LintPipeline:
    """Main façade that ties together toolchain, target and analyzer stages.

    A pipeline runs exactly once. The first DuneTidyError moves it to FAILED
    and its `exit_code` becomes the result; `failed_in` records the state the
    error happened in.
    """

    def __init__(
        self,
        config: TidyConfig | None = None,
        catalog: RuleSetCatalog | None = None,
        toolchain_resolver: ToolchainResolver | None = None,
        target_resolver: TargetResolver | None = None,
        runner_factory: RunnerFactory | None = None,
    ):
        self.config = config or TidyConfig()
        self.catalog = catalog or DEFAULT_CATALOG.extended(
            self.config.extra_required_checks, self.config.extra_optional_checks
        )
        self.toolchain_resolver = toolchain_resolver or ToolchainResolver(
            product=self.config.toolchain_product, version=self.config.clang_version
        )
        self.target_resolver = target_resolver or TargetResolver(
            self.config.source_extensions, self.config.header_extensions
        )
        self.runner_factory = runner_factory or self._build_runner

        self.state = PipelineState.START
        self.failed_in: Optional[PipelineState] = None
        self.error: Optional[DuneTidyError] = None
        self.toolchain: Optional[ToolchainHandle] = None
        self.files: SourceFileList = ()
        self.runner: Optional[AnalysisRunner] = None

    # Core flow ------------------------------------------------------------
    def run(self, arguments: Sequence[str], report: ReportManager) -> int:
        """Run the whole invocation and return the process exit code."""
        if self.state is not PipelineState.START:
            raise RuntimeError("A LintPipeline can only be run once")

        try:
            compilation_database, target = self.validate_arguments(arguments)
            self._advance(PipelineState.ARGS_VALIDATED)

            self.toolchain = self.toolchain_resolver.resolve(self.config.products_dir)
            self._advance(PipelineState.TOOLCHAIN_ACTIVE)

            self.files = self.target_resolver.resolve(target)
            self._advance(PipelineState.TARGET_RESOLVED)
            if not self.files:
                logger.warning("No source files found under %s", target)

            self.runner = self.runner_factory(self.toolchain)
            self._advance(PipelineState.RUNNING)
            checks = self.catalog.composed_configuration()
            for section in self.runner.run(compilation_database, self.files, checks):
                report.write_section(section)
        except DuneTidyError as exc:
            self._fail(exc)
            return exc.exit_code
        except KeyboardInterrupt:
            self._fail(None)
            raise

        self._advance(PipelineState.DONE)
        return 0

    def validate_arguments(self, arguments: Sequence[str]) -> Tuple[Path, str]:
        if len(arguments) != 2:
            raise UsageError(USAGE)
        compilation_database = Path(arguments[0])
        # TODO: warn when compile_commands.json is older than the files being checked.
        if not compilation_database.is_file():
            raise CompilationDatabaseNotFoundError(
                f"CMake-produced compile commands file {compilation_database} not found"
            )
        return compilation_database, arguments[1]

    # Helpers --------------------------------------------------------------
    def _build_runner(self, toolchain: ToolchainHandle) -> AnalysisRunner:
        return AnalysisRunner(
            toolchain=toolchain,
            analyzer=self.config.analyzer,
            header_filter=self.config.header_filter,
            jobs=self.config.jobs,
            timeout=self.config.timeout_seconds,
            fail_fast=self.config.fail_fast,
        )

    def _advance(self, state: PipelineState) -> None:
        logger.debug("Pipeline state %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: Optional[DuneTidyError]) -> None:
        self.failed_in = self.state
        self.error = error
        self.state = PipelineState.FAILED
        if self.runner is not None:
            self.runner.cancel()
