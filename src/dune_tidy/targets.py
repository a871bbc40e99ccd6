"""Resolve a file-or-directory argument into the source files to lint."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .exceptions import TargetNotFoundError, UnsupportedFileKindError
from .models import AnalysisTarget, SourceFileList, TargetKind


def collect_files(input_path: Path, extensions: set[str] | None = None) -> List[Path]:
    files = [f for f in input_path.rglob("*") if f.is_file()]
    if extensions:
        files = [f for f in files if f.name.endswith(tuple(extensions))]
    return sorted(files, key=str)


class TargetResolver:
    """Turns the TARGET argument into an ordered, immutable list of source files."""

    def __init__(self, source_extensions: Iterable[str] = (".cc",), header_extensions: Iterable[str] = (".hh",)):
        self.source_extensions = tuple(source_extensions)
        self.header_extensions = tuple(header_extensions)

    def classify(self, path: Path | str) -> AnalysisTarget:
        # Path("") would mean the working directory.
        if str(path) == "":
            return AnalysisTarget(Path(), TargetKind.INVALID)
        path = Path(path)
        # is_dir()/is_file() follow symlinks, so a dangling link is INVALID.
        if path.is_dir():
            return AnalysisTarget(path, TargetKind.DIRECTORY)
        if path.is_file():
            return AnalysisTarget(path, TargetKind.SINGLE_FILE)
        return AnalysisTarget(path, TargetKind.INVALID)

    def resolve(self, path: Path | str) -> SourceFileList:
        target = self.classify(path)

        if target.kind is TargetKind.DIRECTORY:
            return tuple(collect_files(target.path, extensions=set(self.source_extensions)))

        if target.kind is TargetKind.SINGLE_FILE:
            name = target.path.name
            if name.endswith(self.source_extensions):
                return (target.path,)
            if name.endswith(self.header_extensions):
                raise UnsupportedFileKindError(
                    f"Only source files can be analyzed, not header files: {target.path}"
                )
            raise UnsupportedFileKindError(f"File {target.path} has an unknown extension")

        raise TargetNotFoundError(f"Unable to find '{path}'")
