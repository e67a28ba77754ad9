"""Restore collaborator implementations."""

from .dotnet import DotnetRestoreService

__all__ = ["DotnetRestoreService"]
