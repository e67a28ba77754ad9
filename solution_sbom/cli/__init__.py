"""Command-line interface for solution-sbom."""

from .main import cli, main

__all__ = ["cli", "main"]
