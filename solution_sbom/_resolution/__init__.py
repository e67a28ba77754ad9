"""Project resolution: restore output to per-project component graphs."""

from .assets import lower_bound, parse_assets, read_assets_file
from .models import AssetsFile, AssetsTarget, DirectReference, RawPackage, ResolutionResult
from .protocol import RestoreService
from .resolver import ProjectResolver, normalize_project_path
from .restorers import DotnetRestoreService

__all__ = [
    # Main API
    "ProjectResolver",
    "ResolutionResult",
    "normalize_project_path",
    # Restore collaborators
    "RestoreService",
    "DotnetRestoreService",
    # Restore output
    "AssetsFile",
    "AssetsTarget",
    "DirectReference",
    "RawPackage",
    "lower_bound",
    "parse_assets",
    "read_assets_file",
]
