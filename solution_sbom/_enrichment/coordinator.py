"""Enrichment Coordinator: populates license and vendor metadata on a solution graph.

Every component lacking a license is looked up against the configured
sources in priority order. Lookups run on a bounded thread pool; each
(source, component) pair is fetched at most once per coordinator, with
concurrent callers sharing the in-flight call. Any per-source failure
degrades that component to "no metadata" instead of failing the run.
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests

from solution_sbom._graph import CancellationToken, ComponentIdentity, ComponentRecord, SolutionGraph
from solution_sbom.exceptions import ConfigurationError, EnrichmentSourceError, OperationCancelledError
from solution_sbom.http_client import create_session
from solution_sbom.logging_config import logger

from .metadata import ANONYMOUS, Credentials, EnrichmentResult, SourceMetadata
from .protocol import MetadataSource
from .registry import SourceRegistry
from .sources import GitHubSource, NuGetSource

# Seconds between cancellation checks while waiting on lookups
POLL_INTERVAL = 0.1

# Failures that degrade a single lookup rather than the run
RECOVERABLE_ERRORS = (EnrichmentSourceError, requests.RequestException, ValueError)


def create_default_registry(
    nuget_url: Optional[str] = None,
    enable_github: bool = False,
    request_timeout: float = 10.0,
) -> SourceRegistry:
    """
    Create a SourceRegistry with the default sources.

    - NuGetSource (10) - package manifests from nuget.org or a private feed
    - GitHubSource (50) - repository license, opt-in because anonymous
      access is heavily rate-limited

    Returns:
        Configured SourceRegistry
    """
    registry = SourceRegistry()
    if nuget_url:
        registry.register(NuGetSource(base_url=nuget_url, timeout=request_timeout))
    else:
        registry.register(NuGetSource(timeout=request_timeout))
    if enable_github:
        registry.register(GitHubSource(timeout=request_timeout))
    return registry


@dataclass
class EnrichmentOptions:
    """
    Options for the enrichment stage.

    Attributes:
        max_workers: Maximum components enriched concurrently
        run_timeout: Overall deadline in seconds; lookups still running are abandoned
        retries: Per-request retry attempts for transient HTTP failures
        credentials: Source name -> credentials; missing sources call anonymously
    """

    max_workers: int = 8
    run_timeout: Optional[float] = None
    retries: int = 3
    credentials: Dict[str, Credentials] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ConfigurationError("run_timeout must be positive")


@dataclass
class EnrichmentReport:
    """Outcome of an enrichment run, for reporting completeness."""

    results: Dict[ComponentIdentity, EnrichmentResult] = field(default_factory=dict)
    skipped: int = 0
    timed_out: List[ComponentIdentity] = field(default_factory=list)

    @property
    def unenriched(self) -> List[ComponentIdentity]:
        """Components that were looked up but got no metadata, sorted."""
        return sorted(
            (identity for identity, result in self.results.items() if not result.enriched),
            key=lambda i: i.sort_key,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Summary counts, including how many components each source answered for."""
        stats: Dict[str, Any] = {
            "total": len(self.results),
            "enriched": 0,
            "licenses": 0,
            "vendors": 0,
            "skipped": self.skipped,
            "timed_out": len(self.timed_out),
            "sources": {},
        }
        for result in self.results.values():
            if not result.enriched:
                continue
            stats["enriched"] += 1
            if result.licenses:
                stats["licenses"] += 1
            if result.vendor:
                stats["vendors"] += 1
            stats["sources"][result.provenance] = stats["sources"].get(result.provenance, 0) + 1
        return stats


def apply_enrichment(record: ComponentRecord, result: EnrichmentResult) -> None:
    """Fold an enrichment result into its component record."""
    if not result.enriched:
        return
    if result.licenses:
        record.licenses = set(result.licenses)
    if result.vendor:
        record.vendor = result.vendor
    record.provenance = result.provenance


class EnrichmentCoordinator:
    """
    Coordinates metadata lookups for every component of a solution graph.

    The coordinator owns its HTTP session and its lookup cache; nothing is
    shared between coordinator instances, so separate runs never see each
    other's state.

    Example:
        with EnrichmentCoordinator(create_default_registry(enable_github=True)) as coordinator:
            report = coordinator.enrich(graph)
        print(report.get_stats())
    """

    def __init__(
        self,
        registry: Optional[SourceRegistry] = None,
        options: Optional[EnrichmentOptions] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._registry = registry or create_default_registry()
        self._options = options or EnrichmentOptions()
        self._session = session
        self._owns_session = session is None
        self._lookups: Dict[Tuple[str, ComponentIdentity], Future] = {}
        self._lookups_lock = threading.Lock()
        self._session_lock = threading.Lock()

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    def _get_session(self) -> requests.Session:
        """Get or create a requests session."""
        with self._session_lock:
            if self._session is None:
                self._session = create_session(retries=self._options.retries, pool_size=self._options.max_workers)
            return self._session

    def close(self) -> None:
        """Close the session if this coordinator created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "EnrichmentCoordinator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def clear_cache(self) -> None:
        """Forget completed lookups."""
        with self._lookups_lock:
            self._lookups.clear()

    def enrich(self, graph: SolutionGraph, cancel_token: Optional[CancellationToken] = None) -> EnrichmentReport:
        """
        Enrich every component of the graph that has no license yet.

        Results are applied to the graph only after every lookup has
        finished or timed out; a cancelled run applies nothing.

        Args:
            graph: Solution graph to enrich in place
            cancel_token: Optional run-level cancellation token

        Returns:
            EnrichmentReport describing what was enriched

        Raises:
            OperationCancelledError: If the token was cancelled
        """
        token = cancel_token or CancellationToken()
        report = EnrichmentReport()
        targets = [record.identity for record in graph.records() if not record.licenses]
        report.skipped = len(graph) - len(targets)
        if not targets:
            return report
        if not len(self._registry):
            logger.info("No metadata sources configured, skipping enrichment")
            return report

        source_names = ", ".join(s["name"] for s in self._registry.list_sources())
        logger.info(
            f"Enriching {len(targets)} component(s) from {source_names} with up to {self._options.max_workers} worker(s)"
        )
        deadline = time.monotonic() + self._options.run_timeout if self._options.run_timeout else None
        executor = ThreadPoolExecutor(max_workers=self._options.max_workers, thread_name_prefix="enrich")
        pending: Dict[Future, ComponentIdentity] = {}
        cancelled = False
        try:
            for identity in targets:
                pending[executor.submit(self.enrich_component, identity, token)] = identity

            while pending:
                timeout = POLL_INTERVAL
                if deadline is not None:
                    timeout = min(timeout, max(deadline - time.monotonic(), 0))
                done, _ = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
                token.raise_if_cancelled()
                for future in done:
                    identity = pending.pop(future)
                    report.results[identity] = future.result()
                if deadline is not None and time.monotonic() >= deadline and pending:
                    self._abandon(pending, report)
                    break
        except OperationCancelledError:
            cancelled = True
            logger.warning("Enrichment cancelled; no metadata applied")
            raise
        finally:
            executor.shutdown(wait=not cancelled and not report.timed_out, cancel_futures=True)

        for identity in sorted(report.results, key=lambda i: i.sort_key):
            apply_enrichment(graph.components[identity], report.results[identity])

        stats = report.get_stats()
        logger.info(f"Enrichment complete: {stats['enriched']}/{stats['total']} component(s) enriched")
        return report

    def _abandon(self, pending: Dict[Future, ComponentIdentity], report: EnrichmentReport) -> None:
        logger.warning(f"Enrichment run timeout reached; {len(pending)} component(s) left without metadata")
        for future, identity in pending.items():
            future.cancel()
            report.timed_out.append(identity)
            report.results[identity] = EnrichmentResult(identity=identity, errors=("run timeout exceeded",))
        report.timed_out.sort(key=lambda i: i.sort_key)
        pending.clear()

    def enrich_component(
        self,
        identity: ComponentIdentity,
        cancel_token: Optional[CancellationToken] = None,
    ) -> EnrichmentResult:
        """
        Walk the source chain for one component.

        Sources are tried in priority order until the merged metadata has a
        license. A failing source is logged and skipped.
        """
        token = cancel_token or CancellationToken()
        merged: Optional[SourceMetadata] = None
        errors: List[str] = []

        for source in self._registry.get_sources_for(identity):
            token.raise_if_cancelled()
            try:
                metadata = self._lookup(source, identity, merged)
            except OperationCancelledError:
                raise
            except RECOVERABLE_ERRORS as e:
                logger.warning(f"Error fetching from {source.name} for {identity}: {e}")
                errors.append(f"{source.name}: {e}")
                continue
            except Exception as e:
                # A misbehaving source costs this component its metadata, nothing more
                logger.error(f"Unexpected error from {source.name} for {identity}: {type(e).__name__}: {e}")
                errors.append(f"{source.name}: {type(e).__name__}: {e}")
                continue

            if metadata is not None and metadata.has_data():
                logger.debug(f"Fetched metadata from {source.name} for {identity}")
                merged = metadata if merged is None else merged.merge(metadata)

            if merged is not None and merged.licenses:
                break

        return EnrichmentResult.from_metadata(identity, merged, tuple(errors))

    def _lookup(
        self,
        source: MetadataSource,
        identity: ComponentIdentity,
        known: Optional[SourceMetadata],
    ) -> Optional[SourceMetadata]:
        """Fetch from a source, sharing one call per (source, identity) between all callers."""
        key = (source.name, identity)
        with self._lookups_lock:
            future = self._lookups.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._lookups[key] = future

        if not owner:
            logger.debug(f"Cache hit ({source.name}): {identity}")
            return future.result()

        credentials = self._options.credentials.get(source.name, ANONYMOUS)
        try:
            result = source.fetch(identity, self._get_session(), credentials, known)
        except BaseException as e:
            future.set_exception(e)
            raise
        future.set_result(result)
        return result
