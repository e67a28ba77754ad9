"""Pytest configuration and shared fixtures for all tests."""

import threading
import time
from typing import Dict, List, Optional, Tuple

import pytest

from solution_sbom._graph import CancellationToken, ComponentIdentity, ComponentRecord, ProjectGraph
from solution_sbom._resolution import AssetsFile, AssetsTarget, DirectReference, RawPackage, normalize_project_path
from solution_sbom.exceptions import RestoreMissingError

ASSETS_SUFFIX = ".assets"


def build_assets(
    packages: Dict[str, Dict[str, str]],
    framework: str = "net8.0",
    runtime: Optional[str] = None,
    projects: Optional[Dict[str, str]] = None,
    references: Optional[Dict[str, bool]] = None,
    path: str = "obj/project.assets.json",
) -> AssetsFile:
    """
    Build an AssetsFile with a single target.

    Args:
        packages: "Name/Version" -> {dependency name: version range}
        projects: "Name/Version" -> relative project path for project references
        references: Direct reference name -> development flag
    """
    raw: List[RawPackage] = []
    for key, deps in sorted(packages.items()):
        name, version = key.split("/")
        raw.append(RawPackage(name=name, version=version, dependencies=dict(deps)))
    for key, project_path in sorted((projects or {}).items()):
        name, version = key.split("/")
        raw.append(RawPackage(name=name, version=version, type="project", path=project_path))

    direct = {
        name: DirectReference(name=name, version_range="[1.0.0, )", development=dev)
        for name, dev in (references or {}).items()
    }
    return AssetsFile(
        path=path,
        targets=[AssetsTarget(framework=framework, runtime=runtime, packages=raw)],
        direct_references={framework: direct} if direct else {},
    )


class FakeRestoreService:
    """In-memory restore collaborator keyed by project path."""

    def __init__(self, assets: Dict[str, AssetsFile], gate: Optional[threading.Event] = None) -> None:
        self._assets = {normalize_project_path(path): value for path, value in assets.items()}
        self._gate = gate
        self._lock = threading.Lock()
        self.restored: List[Tuple[str, Optional[str], Optional[str]]] = []
        self.aborted: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def ecosystem(self) -> str:
        return "nuget"

    def is_available(self) -> bool:
        return True

    def restore(
        self,
        project_path: str,
        framework: Optional[str],
        runtime: Optional[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        with self._lock:
            self.restored.append((project_path, framework, runtime))
        if self._gate is not None:
            token = cancel_token or CancellationToken()
            deadline = time.monotonic() + 5
            while not self._gate.wait(0.01) and time.monotonic() < deadline:
                if token.cancelled:
                    with self._lock:
                        self.aborted.append(project_path)
                    token.raise_if_cancelled()
        return self.get_assets_path(project_path)

    def get_assets_path(self, project_path: str) -> str:
        if project_path not in self._assets:
            raise RestoreMissingError(f"Restore output not found for {project_path}")
        return project_path + ASSETS_SUFFIX

    def read_assets(self, assets_path: str) -> AssetsFile:
        return self._assets[assets_path[: -len(ASSETS_SUFFIX)]]


def nuget(name: str, version: str) -> ComponentIdentity:
    return ComponentIdentity("nuget", name, version)


def build_project_graph(project_path: str, edges: Dict[ComponentIdentity, List[ComponentIdentity]]) -> ProjectGraph:
    """Build a ProjectGraph from an adjacency mapping."""
    records = [
        ComponentRecord(identity=identity, origins={project_path}, dependencies=set(deps))
        for identity, deps in sorted(edges.items(), key=lambda kv: kv[0].sort_key)
    ]
    return ProjectGraph(project_path=project_path, components=tuple(records))


@pytest.fixture
def make_assets():
    """Factory for single-target AssetsFile objects."""
    return build_assets


@pytest.fixture
def fake_restore():
    """Factory for FakeRestoreService instances."""
    return FakeRestoreService


@pytest.fixture
def make_project_graph():
    """Factory for ProjectGraph objects."""
    return build_project_graph


@pytest.fixture
def identity():
    """Factory for NuGet component identities."""
    return nuget


@pytest.fixture(autouse=True)
def isolate_credentials(monkeypatch):
    """Keep real credentials in the environment out of every test."""
    for name in ("GITHUB_USERNAME", "GITHUB_TOKEN", "NUGET_USERNAME", "NUGET_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
