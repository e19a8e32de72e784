#!/usr/bin/env python3
# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run all CI checks locally.

Besides format, lint, type check, tests and build, two InfraSynth checks run:
every source file must carry the license header, and the sample template in
``tools/sample`` must synthesize to the same bytes twice in a row.
"""

import filecmp
import pathlib
import subprocess
import sys
import tempfile
import time
from collections.abc import Callable

from yachalk import chalk

# ###############
# Public Interface
# ###############

LICENSE_HEADER = (
    "# Copyright 2026 InfraSynth Contributors\n",
    "# SPDX-License-Identifier: Apache-2.0\n",
)

SAMPLE_TEMPLATE = pathlib.Path("tools") / "sample" / "infrasynth.yaml"


def main() -> int:
    """Run all CI steps and report results."""
    steps: list[tuple[str, list[str] | Callable[[], bool]]] = [
        ("Format check", ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"]),
        ("Lint", ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"]),
        ("License headers", check_license_headers),
        ("Type check", ["uv", "run", "ty", "check", "src/"]),
        ("Tests", ["uv", "run", "pytest", "--cov=infrasynth", "--cov-report=term-missing"]),
        ("Catalog smoke test", ["uv", "run", "infrasynth", "list"]),
        ("Synthesis smoke test", check_sample_synthesis),
        ("Build", ["uv", "build"]),
    ]
    results: list[tuple[str, bool, float]] = []

    for name, step in steps:
        sep = chalk.blue("=" * 60)
        print(f"\n{sep}")
        print(chalk.blue(name))
        print(sep)
        start = time.monotonic()
        passed = step() if callable(step) else _run(step)
        elapsed = time.monotonic() - start
        results.append((name, passed, elapsed))

    sep = "=" * 60
    print(f"\n{chalk.blue(sep)}")
    print(chalk.blue("  Summary"))
    print(chalk.blue(sep))
    all_passed = True
    for name, passed, elapsed in results:
        if passed:
            status = chalk.green("PASS")
            line = chalk.green(f"  {status}  {name} ({elapsed:.1f}s)")
        else:
            status = chalk.red("FAIL")
            line = chalk.red(f"  {status}  {name} ({elapsed:.1f}s)")
        print(line)
        if not passed:
            all_passed = False

    print()
    return 0 if all_passed else 1


def check_license_headers() -> bool:
    """Report every Python file under src/, tests/ and tools/ that lacks the license header."""
    root = _repo_root()
    missing = [
        path.relative_to(root)
        for directory in ("src", "tests", "tools")
        for path in sorted((root / directory).rglob("*.py"))
        if not _has_license_header(path)
    ]
    for path in missing:
        print(chalk.red(f"  missing license header: {path}"))
    if not missing:
        print("  all source files carry the license header")
    return not missing


def check_sample_synthesis() -> bool:
    """Synthesize the sample template twice and require byte-identical documents."""
    with tempfile.TemporaryDirectory(prefix="infrasynth-ci-") as tmp:
        first = pathlib.Path(tmp) / "first.tf.json"
        second = pathlib.Path(tmp) / "second.tf.json"
        for target in (first, second):
            if not _run(["uv", "run", "infrasynth", "synth", str(SAMPLE_TEMPLATE), "--output", str(target)]):
                return False
        if not filecmp.cmp(first, second, shallow=False):
            print(chalk.red(f"  {SAMPLE_TEMPLATE} synthesized to different documents on repeated runs"))
            return False
    print(f"  {SAMPLE_TEMPLATE} is repeatable")
    return True


# ################
# Implementation
# ################


def _repo_root() -> pathlib.Path:
    return pathlib.Path(__file__).parent.parent


def _run(cmd: list[str]) -> bool:
    return subprocess.run(cmd, cwd=_repo_root()).returncode == 0


def _has_license_header(path: pathlib.Path) -> bool:
    lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
    if lines and lines[0].startswith("#!"):
        lines = lines[1:]
    return tuple(lines[: len(LICENSE_HEADER)]) == LICENSE_HEADER


if __name__ == "__main__":
    sys.exit(main())
