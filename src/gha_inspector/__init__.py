"""
gha_inspector: GitHub Actions run inspection from the command line

This package drives the GitHub CLI (gh) to find workflow runs, fetch
failed-step logs and flag common failure patterns in them.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
