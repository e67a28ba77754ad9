"""Restore collaborator backed by the dotnet CLI."""

import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from solution_sbom._graph import CancellationToken
from solution_sbom.exceptions import RestoreMissingError
from solution_sbom.logging_config import logger

from ..assets import ASSETS_FILE_NAME, read_assets_file
from ..models import AssetsFile

DEFAULT_TIMEOUT = 600  # seconds - cold restores download every package
STDERR_TAIL_LINES = 20
POLL_INTERVAL = 0.1  # seconds between cancellation checks
TERMINATE_GRACE = 5  # seconds a cancelled restore gets to exit before it is killed


class DotnetRestoreService:
    """
    Restores .NET projects with ``dotnet restore`` and reads ``obj/project.assets.json``.

    Each call runs its own process and touches only that project's output,
    so independent projects can be restored concurrently.
    """

    def __init__(self, command: str = "dotnet", timeout: int = DEFAULT_TIMEOUT) -> None:
        self._command = command
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "dotnet"

    @property
    def ecosystem(self) -> str:
        return "nuget"

    def is_available(self) -> bool:
        """Check whether the dotnet executable is on PATH."""
        return shutil.which(self._command) is not None

    def restore(
        self,
        project_path: str,
        framework: Optional[str],
        runtime: Optional[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Run ``dotnet restore`` for one project.

        The child process is polled so that a cancelled token terminates it
        instead of waiting for the restore to finish.

        Raises:
            RestoreMissingError: If restore failed, timed out or produced no output
            OperationCancelledError: If the token was cancelled while restoring
        """
        cmd: List[str] = [self._command, "restore", project_path]
        if runtime:
            cmd.extend(["--runtime", runtime])
        if framework:
            cmd.append(f"-p:TargetFramework={framework}")

        token = cancel_token or CancellationToken()
        token.raise_if_cancelled()
        logger.debug(f"Running command: {' '.join(cmd)}")
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                shell=False,
            )
        except FileNotFoundError:
            raise RestoreMissingError(f"{self._command} command not found. Make sure the .NET SDK is installed.")

        deadline = time.monotonic() + self._timeout
        while True:
            try:
                stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if token.cancelled:
                    self._stop(process)
                    logger.warning(f"Restore of {project_path} cancelled")
                    token.raise_if_cancelled()
                if time.monotonic() >= deadline:
                    self._stop(process)
                    raise RestoreMissingError(f"Restore of {project_path} timed out after {self._timeout}s")

        if process.returncode != 0:
            output = (stderr or stdout or "").strip().splitlines()
            tail = "\n".join(output[-STDERR_TAIL_LINES:])
            raise RestoreMissingError(f"Restore of {project_path} failed with exit code {process.returncode}: {tail}")

        return self.get_assets_path(project_path)

    @staticmethod
    def _stop(process: subprocess.Popen) -> None:
        """Terminate a running restore, killing it if it does not exit in time."""
        process.terminate()
        try:
            process.communicate(timeout=TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()

    def get_assets_path(self, project_path: str) -> str:
        assets_path = Path(project_path).parent / "obj" / ASSETS_FILE_NAME
        if not assets_path.is_file():
            raise RestoreMissingError(f"{ASSETS_FILE_NAME} not found for {project_path}; has the project been restored?")
        return str(assets_path)

    def read_assets(self, assets_path: str) -> AssetsFile:
        return read_assets_file(assets_path)
