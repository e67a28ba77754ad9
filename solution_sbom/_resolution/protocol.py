"""RestoreService protocol for project restore collaborators."""

from typing import Optional, Protocol

from .._graph import CancellationToken
from .models import AssetsFile


class RestoreService(Protocol):
    """
    Protocol for the external mechanism that restores a project.

    The Project Resolver never restores anything itself: it asks a
    RestoreService to produce the restore output and to read it back,
    then interprets the packages into component identities.

    Implementations signal a missing or unreadable restore output by
    raising RestoreMissingError.

    Example:
        class DotnetRestoreService:
            name = "dotnet"
            ecosystem = "nuget"

            def restore(self, project_path, framework, runtime, cancel_token=None) -> str:
                # run `dotnet restore` and return the assets file path
                ...
    """

    @property
    def name(self) -> str:
        """Human-readable name used in logs (e.g. "dotnet")."""
        ...

    @property
    def ecosystem(self) -> str:
        """Package ecosystem of restored packages, used as the PURL type (e.g. "nuget")."""
        ...

    def is_available(self) -> bool:
        """Whether the restore tool can run on this machine."""
        ...

    def restore(
        self,
        project_path: str,
        framework: Optional[str],
        runtime: Optional[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Restore a project and return the path of its restore output.

        Raises:
            RestoreMissingError: If restore failed or produced no output
            OperationCancelledError: If the token was cancelled while restoring; a
                running restore process must be stopped before raising
        """
        ...

    def get_assets_path(self, project_path: str) -> str:
        """
        Locate the existing restore output of a project without restoring.

        Raises:
            RestoreMissingError: If the project was never restored
        """
        ...

    def read_assets(self, assets_path: str) -> AssetsFile:
        """
        Read the resolved package list from a restore output.

        Raises:
            RestoreMissingError: If the output is absent or cannot be parsed
        """
        ...
