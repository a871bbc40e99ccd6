"""Domain models used throughout the lint pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple

from .exceptions import AnalyzerInvocationError

SourceFileList = Tuple[Path, ...]


class TargetKind(str, Enum):
    SINGLE_FILE = "single_file"
    DIRECTORY = "directory"
    INVALID = "invalid"


class ToolchainStatus(str, Enum):
    UNACTIVATED = "unactivated"
    ACTIVATING = "activating"
    ACTIVE = "active"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisTarget:
    """A caller-supplied path tagged with what it turned out to be."""

    path: Path
    kind: TargetKind


@dataclass
class ToolchainHandle:
    """An activated (or failed) clang installation.

    `environment` holds only the variables that `setup` changed; the runner
    overlays them on the inherited environment of every analyzer process.
    """

    products_dir: Path
    version: str | None = None
    status: ToolchainStatus = ToolchainStatus.UNACTIVATED
    environment: Dict[str, str] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.status is ToolchainStatus.ACTIVE


@dataclass
class ReportSection:
    """Output of one clang-tidy run over one source file."""

    path: Path
    output: str = ""
    returncode: int | None = None
    error: AnalyzerInvocationError | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None
