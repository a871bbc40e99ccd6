import os
import shutil
import stat
import sys
from pathlib import Path

import pytest

FAKE_CLANG_TIDY = '''#!{python}
import os
import signal
import sys
import time

target = sys.argv[-1]
name = os.path.basename(target)
if "hang" in name:
    time.sleep(60)
if "slow" in name:
    time.sleep(0.5)
if "crash" in name:
    os.kill(os.getpid(), signal.SIGKILL)
print("args: " + " ".join(arg for arg in sys.argv[1:] if not arg.startswith("-checks=")))
checks = [arg for arg in sys.argv[1:] if arg.startswith("-checks=")]
print("checks: " + (checks[0][len("-checks="):] if checks else ""))
print("toolchain: " + os.environ.get("FAKE_TOOLCHAIN", "none"))
sys.stderr.write(target + ":1:1: warning: fake finding [fake-check]\\n")
sys.exit(1 if "finding" in name else 0)
'''

FAKE_UPS_SETUP = """\
if [ -n "$FAKE_PRODUCTS_BROKEN" ]; then
    return 5
fi

ups() {
    if [ "$1" = "list" ]; then
        printf '"clang" "v7_0_0" "Linux64bit+3.10-2.17" "e17:prof" ""\\n'
        printf '"clang" "v10_0_0" "Linux64bit+3.10-2.17" "e19:prof" ""\\n'
        printf '"clang" "v9_0_0" "Linux64bit+3.10-2.17" "" ""\\n'
    fi
}

setup() {
    if [ -n "$FAKE_SETUP_FAIL" ]; then
        echo "setup failed for $1 $2" >&2
        return 7
    fi
    echo "setting up $1 $2"
    export FAKE_TOOLCHAIN="$1-$2"
    export PATH="/fake/$1/$2/bin:$PATH"
    return 0
}
"""

requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not available")


@pytest.fixture
def fake_analyzer(tmp_path: Path) -> Path:
    script = tmp_path / "bin" / "fake-clang-tidy"
    script.parent.mkdir()
    script.write_text(FAKE_CLANG_TIDY.format(python=sys.executable), encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def products_dir(tmp_path: Path) -> Path:
    products = tmp_path / "products"
    products.mkdir()
    (products / "setup").write_text(FAKE_UPS_SETUP, encoding="utf-8")
    return products


@pytest.fixture
def compile_commands(tmp_path: Path) -> Path:
    path = tmp_path / "build" / "compile_commands.json"
    path.parent.mkdir()
    path.write_text("[]", encoding="utf-8")
    return path


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    root = tmp_path / "src"
    root.mkdir()
    (root / "b.cc").write_text("int b() { return 0; }\n", encoding="utf-8")
    (root / "a.cc").write_text("int a() { return 0; }\n", encoding="utf-8")
    (root / "a.hh").write_text("int a();\n", encoding="utf-8")
    return root


@pytest.fixture
def clean_env() -> dict:
    env = dict(os.environ)
    for key in ("FAKE_TOOLCHAIN", "FAKE_SETUP_FAIL", "FAKE_PRODUCTS_BROKEN"):
        env.pop(key, None)
    return env
