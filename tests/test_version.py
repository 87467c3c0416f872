"""Simple version check for the package.

Verifies that the ``__version__`` attribute matches the expected release
string."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import chord_generator  # noqa: E402


def test_version():
    """The package exposes the current release string."""
    assert chord_generator.__version__ == "0.1.0"
