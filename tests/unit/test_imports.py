"""Import-order checks run in a fresh interpreter.

The test session imports the app before any single module, which can hide
cycles that only bite when a module is the first thing imported.
"""

import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize(
    "module",
    [
        "backend.app.budget.aggregator",
        "backend.app.models",
        "backend.app.models.budget",
        "backend.app.expenses.splits",
        "backend.app.main",
    ],
)
def test_module_imports_cleanly_first(module: str) -> None:
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
