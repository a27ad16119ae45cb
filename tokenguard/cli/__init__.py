"""Command-line tools for tokenguard (``python -m tokenguard.cli``)."""

from .main import app, get_app, run_step

__all__ = ["app", "get_app", "run_step"]
