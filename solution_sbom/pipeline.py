"""
End-to-end pipeline: resolve, aggregate, enrich, export and write an SBOM.

``run_pipeline`` never raises for per-item problems; it returns a
PipelineResult carrying the exit code and the list of degraded items so
callers can judge how complete the SBOM is.
"""

import os
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests

from ._aggregation import AggregationOptions, ConflictPolicy, SolutionAggregator
from ._enrichment import (
    Credentials,
    EnrichmentCoordinator,
    EnrichmentOptions,
    EnrichmentReport,
    SourceRegistry,
    create_default_registry,
)
from ._export import ExportedGraph, export_graph
from ._graph import CancellationToken, ComponentIdentity, ResolutionError, SolutionGraph
from ._resolution import DotnetRestoreService, ProjectResolver, RestoreService
from .discovery import expand_project_paths
from .exceptions import (
    AllProjectsFailedError,
    ConfigurationError,
    OutputError,
    VersionConflictError,
)
from .logging_config import logger
from .serialization import (
    DEFAULT_CYCLONEDX_VERSION,
    DEFAULT_FILENAMES,
    FORMAT_JSON,
    FORMAT_XML,
    build_bom,
    get_supported_cyclonedx_versions,
    load_metadata_template,
    serialize_cyclonedx_bom,
)


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    INVALID_OPTIONS = 1
    RESOLUTION_FAILED = 2
    VERSION_CONFLICT = 3
    OUTPUT_FAILED = 4


@dataclass
class RunOptions:
    """
    Settings for a single pipeline run.

    Credentials are keyed by metadata source name ("nuget.org", "github.com")
    and are resolved by the caller; the pipeline never reads the
    environment itself.
    """

    project_paths: List[str] = field(default_factory=list)
    output_dir: str = "."
    filename: Optional[str] = None
    output_format: str = FORMAT_JSON
    framework: Optional[str] = None
    runtime: Optional[str] = None
    scan_project_references: bool = False
    restore: bool = True
    exclude_dev: bool = False
    conflict_policy: ConflictPolicy = ConflictPolicy.KEEP
    enrich: bool = True
    enable_github_licenses: bool = False
    nuget_url: Optional[str] = None
    max_workers: int = 4
    request_timeout: float = 10.0
    run_timeout: Optional[float] = None
    credentials: Dict[str, Credentials] = field(default_factory=dict)
    root_name: Optional[str] = None
    metadata_template: Optional[str] = None
    spec_version: str = DEFAULT_CYCLONEDX_VERSION

    def validate(self) -> None:
        """
        Validate run settings.

        Raises:
            ConfigurationError: If settings are invalid
        """
        if not self.project_paths:
            raise ConfigurationError("No project or solution paths given")
        for path in self.project_paths:
            if not os.path.exists(path):
                raise ConfigurationError(f"Project or solution path does not exist: {path}")
        if self.output_format not in (FORMAT_JSON, FORMAT_XML):
            raise ConfigurationError(f"Unsupported output format: {self.output_format}")
        if self.spec_version not in get_supported_cyclonedx_versions():
            raise ConfigurationError(f"Unsupported CycloneDX version: {self.spec_version}")
        if self.metadata_template and not os.path.isfile(self.metadata_template):
            raise ConfigurationError(f"Metadata template does not exist: {self.metadata_template}")
        if self.filename and os.path.basename(self.filename) != self.filename:
            raise ConfigurationError("Output filename must not contain a directory")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ConfigurationError("run_timeout must be positive")
        if self.nuget_url:
            self._validate_nuget_url()

    def _validate_nuget_url(self) -> None:
        parsed = urlparse(self.nuget_url)
        if parsed.scheme not in ("http", "https"):
            raise ConfigurationError("NuGet feed URL must start with http:// or https://")
        if not parsed.netloc:
            raise ConfigurationError("NuGet feed URL must include a valid hostname")
        if parsed.scheme == "http":
            logger.warning("Using HTTP (not HTTPS) for the NuGet feed; credentials are sent in clear text")
        self.nuget_url = self.nuget_url.rstrip("/")

    @property
    def output_path(self) -> str:
        return os.path.join(self.output_dir, self.filename or DEFAULT_FILENAMES[self.output_format])

    def aggregation_options(self) -> AggregationOptions:
        return AggregationOptions(
            framework=self.framework,
            runtime=self.runtime,
            max_workers=self.max_workers,
            conflict_policy=self.conflict_policy,
        )

    def enrichment_options(self) -> EnrichmentOptions:
        return EnrichmentOptions(
            max_workers=self.max_workers,
            run_timeout=self.run_timeout,
            credentials=dict(self.credentials),
        )


@dataclass
class DegradedItems:
    """Everything that makes an SBOM less than complete."""

    failed_projects: List[ResolutionError] = field(default_factory=list)
    conflicts: Dict[Tuple[str, str], List[str]] = field(default_factory=dict)
    unresolved: List[ComponentIdentity] = field(default_factory=list)
    unenriched: List[ComponentIdentity] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.failed_projects or self.conflicts or self.unresolved or self.unenriched)

    @classmethod
    def from_graph(cls, graph: SolutionGraph, report: Optional[EnrichmentReport] = None) -> "DegradedItems":
        return cls(
            failed_projects=list(graph.failures),
            conflicts=graph.conflict_groups(),
            unresolved=sorted(graph.unresolved, key=lambda i: i.sort_key),
            unenriched=report.unenriched if report else [],
        )


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""

    exit_code: ExitCode
    graph: Optional[SolutionGraph] = None
    exported: Optional[ExportedGraph] = None
    enrichment: Optional[EnrichmentReport] = None
    degraded: DegradedItems = field(default_factory=DegradedItems)
    output_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.exit_code == ExitCode.OK


def write_output(content: str, output_path: str) -> None:
    """
    Write the SBOM document, creating the output directory if needed.

    Raises:
        OutputError: If the file cannot be written
    """
    directory = os.path.dirname(output_path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise OutputError(f"Failed to write SBOM to {output_path}: {e}") from e
    logger.info(f"SBOM written to {output_path}")


def run_pipeline(
    options: RunOptions,
    restore_service: Optional[RestoreService] = None,
    registry: Optional[SourceRegistry] = None,
    cancel_token: Optional[CancellationToken] = None,
    session: Optional[requests.Session] = None,
) -> PipelineResult:
    """
    Run resolution, aggregation, enrichment and export, then write the document.

    Args:
        options: Run settings
        restore_service: Restore collaborator (defaults to DotnetRestoreService)
        registry: Metadata sources (defaults to create_default_registry)
        cancel_token: Optional run-level cancellation token
        session: Optional HTTP session for enrichment

    Returns:
        PipelineResult with exit code and degraded items

    Raises:
        OperationCancelledError: If the token was cancelled
    """
    try:
        options.validate()
        template = load_metadata_template(options.metadata_template) if options.metadata_template else None
    except ConfigurationError as e:
        logger.error(f"Invalid options: {e}")
        return PipelineResult(exit_code=ExitCode.INVALID_OPTIONS, error=str(e))

    restore_service = restore_service or DotnetRestoreService()
    if options.restore and not restore_service.is_available():
        error = f"{restore_service.name} is not available; install it or use --disable-package-restore"
        logger.error(error)
        return PipelineResult(exit_code=ExitCode.RESOLUTION_FAILED, error=error)

    try:
        project_paths = expand_project_paths(options.project_paths)
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        return PipelineResult(exit_code=ExitCode.RESOLUTION_FAILED, error=str(e))
    logger.info(f"Resolving {len(project_paths)} project(s)")

    token = cancel_token or CancellationToken()
    resolver = ProjectResolver(
        restore_service,
        restore=options.restore,
        scan_project_references=options.scan_project_references,
        exclude_dev=options.exclude_dev,
    )
    aggregator = SolutionAggregator(resolver, options.aggregation_options())

    try:
        graph = aggregator.aggregate(project_paths, token)
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        return PipelineResult(exit_code=ExitCode.RESOLUTION_FAILED, error=str(e))
    except AllProjectsFailedError as e:
        logger.error(str(e))
        return PipelineResult(
            exit_code=ExitCode.RESOLUTION_FAILED,
            degraded=DegradedItems(failed_projects=list(e.failures)),
            error=str(e),
        )
    except VersionConflictError as e:
        logger.error(str(e))
        degraded = DegradedItems.from_graph(e.graph) if e.graph is not None else DegradedItems(conflicts=e.conflicts)
        return PipelineResult(exit_code=ExitCode.VERSION_CONFLICT, graph=e.graph, degraded=degraded, error=str(e))

    report = None
    if options.enrich:
        sources = registry or create_default_registry(
            nuget_url=options.nuget_url,
            enable_github=options.enable_github_licenses,
            request_timeout=options.request_timeout,
        )
        with EnrichmentCoordinator(sources, options.enrichment_options(), session=session) as coordinator:
            report = coordinator.enrich(graph, token)
    else:
        logger.info("Enrichment disabled")

    exported = export_graph(graph)
    degraded = DegradedItems.from_graph(graph, report)
    result = PipelineResult(
        exit_code=ExitCode.OK,
        graph=graph,
        exported=exported,
        enrichment=report,
        degraded=degraded,
        output_path=options.output_path,
    )

    try:
        bom = build_bom(exported, options.root_name, template)
        content = serialize_cyclonedx_bom(bom, options.output_format, options.spec_version)
        write_output(content, options.output_path)
    except (OutputError, ValueError) as e:
        logger.error(str(e))
        result.exit_code = ExitCode.OUTPUT_FAILED
        result.error = str(e)

    return result
