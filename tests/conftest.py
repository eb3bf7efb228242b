"""Pytest configuration for the workbench runtime tests.

Ensures the project root and the tests directory are in sys.path so both
the packages and the shared fakes (``from fakes.sandbox import ...``) import.
"""

import sys
from pathlib import Path

tests_dir = Path(__file__).parent
project_root = tests_dir.parent
for path in (project_root, tests_dir):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
