"""Entry point for ``python -m dashquery``."""

from .cli.main import run

run()
