"""Locate and activate a clang toolchain from a UPS products directory.

The products directory is activated by sourcing its `setup` script; the
available versions come from `ups list -aK+ <product>` and the chosen one is
activated with `setup <product> <version>`. Each step runs in a fresh bash
subprocess, and the environment produced by the final step is returned on the
ToolchainHandle instead of being applied to this process.
"""

from __future__ import annotations

import os
import re
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import EnvironmentSetupError, ToolchainActivationError, ToolchainNotFoundError
from .logging import get_logger
from .models import ToolchainHandle, ToolchainStatus

logger = get_logger("toolchain")

# "clang" "v7_0_0" "Linux64bit+3.10-2.17" "e17:prof" ""
_UPS_LINE = re.compile(r'^\s*\S+\s+"([^"]+)"')
_VERSION_TOKEN = re.compile(r"[0-9]+|[A-Za-z]+")
# Variables bash itself rewrites on every run.
_SHELL_NOISE = {"_", "SHLVL", "PWD", "OLDPWD"}

ShellRunner = Callable[[str, Mapping[str, str]], subprocess.CompletedProcess]


def run_bash(script: str, env: Mapping[str, str]) -> subprocess.CompletedProcess:
    """Run `script` in a non-interactive bash and capture its output."""
    return subprocess.run(
        ["bash", "--noprofile", "--norc", "-c", script],
        capture_output=True,
        text=True,
        env=dict(env),
    )


def version_key(version: str) -> Tuple[Tuple[Tuple[int, int, str], ...], str]:
    """Sort key for UPS-style version strings such as `v10_0_0` or `7.0.1`.

    Digit runs compare numerically and letter runs as strings; separators are
    ignored. The raw string breaks ties so `v1_0` and `v1.0` still order.
    """
    parts = []
    for token in _VERSION_TOKEN.findall(version):
        if token.isdigit():
            parts.append((1, int(token), ""))
        else:
            parts.append((0, 0, token))
    return tuple(parts), version


def select_version(versions: Sequence[str]) -> str:
    """Pick the greatest version; among equal keys the last one listed wins."""
    if not versions:
        raise ToolchainNotFoundError("No versions to choose from")
    best = versions[0]
    best_key = version_key(best)
    for candidate in versions[1:]:
        key = version_key(candidate)
        if key >= best_key:
            best, best_key = candidate, key
    return best


def parse_ups_list(output: str) -> List[str]:
    versions = []
    for line in output.splitlines():
        match = _UPS_LINE.match(line)
        if match:
            versions.append(match.group(1))
    return versions


def parse_env_dump(output: str) -> Dict[str, str]:
    """Parse the NUL-separated output of `env -0`."""
    environment: Dict[str, str] = {}
    for entry in output.split("\0"):
        if not entry or "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        environment[key] = value
    return environment


def environment_changes(before: Mapping[str, str], after: Mapping[str, str]) -> Dict[str, str]:
    return {
        key: value
        for key, value in after.items()
        if key not in _SHELL_NOISE and before.get(key) != value
    }


class ToolchainResolver:
    """Resolves a ToolchainHandle for `product` from a products directory."""

    def __init__(
        self,
        product: str = "clang",
        version: Optional[str] = None,
        shell: ShellRunner | None = None,
        base_env: Mapping[str, str] | None = None,
    ):
        self.product = product
        self.pinned_version = version
        self.shell = shell or run_bash
        self.base_env = dict(os.environ if base_env is None else base_env)
        self.last_handle: ToolchainHandle | None = None

    def resolve(self, products_dir: Path) -> ToolchainHandle:
        products_dir = Path(products_dir)
        handle = ToolchainHandle(products_dir=products_dir)
        self.last_handle = handle

        self._setup_products(products_dir)
        logger.info("Set up the products directory %s", products_dir)

        versions = self.available_versions(products_dir)
        if not versions:
            raise ToolchainNotFoundError(
                f"A products directory containing {self.product} isn't set up ({products_dir})"
            )

        if self.pinned_version is not None:
            if self.pinned_version not in versions:
                raise ToolchainNotFoundError(
                    f"{self.product} {self.pinned_version} is not available from {products_dir}; "
                    f"found {', '.join(versions)}"
                )
            version = self.pinned_version
        else:
            version = select_version(versions)
        logger.debug("Available %s versions: %s; selected %s", self.product, ", ".join(versions), version)

        handle.version = version
        handle.status = ToolchainStatus.ACTIVATING
        result = self._run(
            products_dir,
            f"setup {shlex.quote(self.product)} {shlex.quote(version)} 1>&2 || exit $?",
            "env -0",
        )
        if result.returncode != 0:
            handle.status = ToolchainStatus.FAILED
            logger.debug("setup %s %s stderr:\n%s", self.product, version, result.stderr)
            raise ToolchainActivationError(version, result.returncode)

        handle.environment = environment_changes(self.base_env, parse_env_dump(result.stdout))
        handle.status = ToolchainStatus.ACTIVE
        logger.info("Set up %s %s", self.product, version)
        return handle

    def available_versions(self, products_dir: Path) -> List[str]:
        result = self._run(products_dir, f"ups list -aK+ {shlex.quote(self.product)}")
        if result.returncode != 0:
            logger.debug("ups list exited with %s:\n%s", result.returncode, result.stderr)
            return []
        return parse_ups_list(result.stdout)

    def _setup_products(self, products_dir: Path) -> None:
        setup_script = products_dir / "setup"
        if not setup_script.is_file():
            raise EnvironmentSetupError(
                f"There was a problem setting up the products directory {products_dir}: "
                f"{setup_script} not found"
            )
        result = self._run(products_dir)
        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            raise EnvironmentSetupError(
                f"There was a problem setting up the products directory {products_dir} "
                f"(return value was {result.returncode})" + (f": {detail}" if detail else "")
            )

    def _run(self, products_dir: Path, *commands: str) -> subprocess.CompletedProcess:
        setup_script = shlex.quote(str(products_dir / "setup"))
        script = "\n".join([f". {setup_script} 1>&2 || exit $?", *commands])
        logger.debug("Running shell script:\n%s", script)
        try:
            return self.shell(script, self.base_env)
        except OSError as exc:
            raise EnvironmentSetupError(
                f"There was a problem setting up the products directory {products_dir}: {exc}"
            ) from exc
