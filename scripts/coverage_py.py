#!/usr/bin/env python3
"""Run the chronomap tests under coverage and print a line report.

Usage:
    python scripts/coverage_py.py
"""

import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
DATA_FILE = ROOT / ".coverage"


def coverage(command: str, *args: str) -> None:
    cmd = [sys.executable, "-m", "coverage", command]
    cmd += [f"--data-file={DATA_FILE}", *args]
    result = subprocess.run(cmd, cwd=str(ROOT))
    if result.returncode != 0:
        sys.exit(result.returncode)


if __name__ == "__main__":
    coverage("erase")
    coverage("run", "--source=chronomap", "--omit=*_test.py", "-m", "pytest")
    coverage("report", "--show-missing")
