"""Metadata source implementations for component enrichment."""

from .github import GitHubSource
from .nuget import NuGetSource

__all__ = [
    "GitHubSource",
    "NuGetSource",
]
