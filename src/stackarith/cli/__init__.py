"""Command-line entry points."""

from stackarith.cli.run_arithmetic import main, run_arithmetic

__all__ = ["main", "run_arithmetic"]
