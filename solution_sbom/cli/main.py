"""solution-sbom command line."""

import signal
import sys
from contextlib import contextmanager
from typing import Dict, Generator, Optional, Tuple

import click

from .. import __version__
from .._aggregation import ConflictPolicy
from .._enrichment import Credentials
from .._enrichment.sources.github import SOURCE_NAME as GITHUB_SOURCE
from .._enrichment.sources.nuget import SOURCE_NAME as NUGET_SOURCE
from .._graph import CancellationToken
from ..console import (
    console,
    gha_warning,
    print_aggregation_summary,
    print_banner,
    print_degraded_items,
    print_enrichment_summary,
    print_final_failure,
    print_final_success,
)
from ..exceptions import ConfigurationError, OperationCancelledError
from ..logging_config import LOG_FORMAT_JSON, LOG_FORMAT_TEXT, configure_logging, logger
from ..pipeline import ExitCode, PipelineResult, RunOptions, run_pipeline
from ..serialization import DEFAULT_CYCLONEDX_VERSION, FORMAT_JSON, FORMAT_XML, get_supported_cyclonedx_versions
from .credentials import (
    GITHUB_TOKEN_ENV,
    GITHUB_USERNAME_ENV,
    NUGET_PASSWORD_ENV,
    NUGET_USERNAME_ENV,
    resolve_value,
)

# Exit code used when the run is interrupted
EXIT_CANCELLED = 130

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_credentials(
    github_username: Optional[str],
    github_token: Optional[str],
    github_token_stdin: bool,
    nuget_username: Optional[str],
    nuget_password: Optional[str],
) -> Dict[str, Credentials]:
    """
    Resolve credentials for every metadata source.

    Raises:
        ConfigurationError: If --github-token-stdin was given and stdin is empty
    """
    stdin = click.get_text_stream("stdin") if github_token_stdin and not github_token else None
    return {
        GITHUB_SOURCE: Credentials(
            username=resolve_value(github_username, GITHUB_USERNAME_ENV),
            token=resolve_value(github_token, GITHUB_TOKEN_ENV, stdin=stdin),
        ),
        NUGET_SOURCE: Credentials(
            username=resolve_value(nuget_username, NUGET_USERNAME_ENV),
            token=resolve_value(nuget_password, NUGET_PASSWORD_ENV),
        ),
    }


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Generator[None, None, None]:
    """Turn Ctrl+C into a cooperative cancellation of the run."""

    def handler(signum, frame):
        token.cancel("interrupted")

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def report(result: PipelineResult) -> None:
    """Print the run summary."""
    graph = result.graph
    if graph is not None:
        print_aggregation_summary(
            projects=len(graph.projects),
            failed=len(graph.failures),
            components=len(graph),
            edges=sum(len(record.dependencies) for record in graph.components.values()),
            conflicts=len(graph.conflicts),
            unresolved=len(graph.unresolved),
        )
    if result.enrichment is not None:
        print_enrichment_summary(result.enrichment.get_stats())

    print_degraded_items(result.degraded)
    if result.success and not result.degraded.is_empty:
        gha_warning("The SBOM is incomplete; see the degraded items above", title="Partial SBOM")

    if result.success:
        print_final_success(result.output_path)
    else:
        print_final_failure(result.error or f"Run failed ({result.exit_code.name})")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("-o", "--output", "output_dir", default=".", show_default=True, help="Output directory.")
@click.option("--filename", default=None, help="Output file name (default: bom.json, or bom.xml with --xml).")
@click.option("--xml", "use_xml", is_flag=True, help="Write CycloneDX XML instead of JSON.")
@click.option("-f", "--framework", default=None, help="Target framework to resolve (e.g. net8.0).")
@click.option("-r", "--runtime", default=None, help="Runtime identifier to resolve (e.g. linux-x64).")
@click.option("--scan-project-references", is_flag=True, help="Follow project-to-project references.")
@click.option("--disable-package-restore", is_flag=True, help="Read existing restore output instead of restoring.")
@click.option("--exclude-dev", is_flag=True, help="Exclude development-only dependencies.")
@click.option("--fail-on-conflict", is_flag=True, help="Fail when a component resolves to several versions.")
@click.option("--enrich/--no-enrich", default=True, show_default=True, help="Fetch license and vendor metadata.")
@click.option("--enable-github-licenses", is_flag=True, help="Resolve licenses through the GitHub API.")
@click.option("--github-username", default=None, help=f"GitHub username (env: {GITHUB_USERNAME_ENV}).")
@click.option("--github-token", default=None, help=f"GitHub token (env: {GITHUB_TOKEN_ENV}).")
@click.option("--github-token-stdin", is_flag=True, help="Read the GitHub token from stdin.")
@click.option("--nuget-url", default=None, help="NuGet flat container base URL of a private feed.")
@click.option("--nuget-username", default=None, help=f"NuGet feed username (env: {NUGET_USERNAME_ENV}).")
@click.option("--nuget-password", default=None, help=f"NuGet feed password or API key (env: {NUGET_PASSWORD_ENV}).")
@click.option("--name", "root_name", default=None, help="Name of the top-level component in the SBOM.")
@click.option(
    "--metadata-template",
    default=None,
    type=click.Path(dir_okay=False),
    help="CycloneDX JSON file whose metadata (component, supplier, tools) is merged into the SBOM.",
)
@click.option(
    "--spec-version",
    default=DEFAULT_CYCLONEDX_VERSION,
    show_default=True,
    type=click.Choice(get_supported_cyclonedx_versions()),
    help="CycloneDX specification version to write.",
)
@click.option("--max-workers", default=4, show_default=True, type=int, help="Concurrent restores and lookups.")
@click.option("--timeout", "request_timeout", default=10.0, show_default=True, type=float, help="HTTP timeout (s).")
@click.option("--run-timeout", default=None, type=float, help="Overall enrichment deadline in seconds.")
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level.",
)
@click.option(
    "--log-format",
    default=LOG_FORMAT_TEXT,
    show_default=True,
    type=click.Choice([LOG_FORMAT_TEXT, LOG_FORMAT_JSON]),
    help="Log line format.",
)
@click.version_option(version=__version__, prog_name="solution-sbom")
def cli(
    paths: Tuple[str, ...],
    output_dir: str,
    filename: Optional[str],
    use_xml: bool,
    framework: Optional[str],
    runtime: Optional[str],
    scan_project_references: bool,
    disable_package_restore: bool,
    exclude_dev: bool,
    fail_on_conflict: bool,
    enrich: bool,
    enable_github_licenses: bool,
    github_username: Optional[str],
    github_token: Optional[str],
    github_token_stdin: bool,
    nuget_url: Optional[str],
    nuget_username: Optional[str],
    nuget_password: Optional[str],
    root_name: Optional[str],
    metadata_template: Optional[str],
    spec_version: str,
    max_workers: int,
    request_timeout: float,
    run_timeout: Optional[float],
    log_level: str,
    log_format: str,
) -> None:
    """Generate a CycloneDX SBOM for a .NET solution, project or directory.

    PATHS are solution files, project files or directories. Every project
    is restored, merged into one deduplicated dependency graph and
    optionally enriched with license and vendor metadata.
    """
    configure_logging(log_level, log_format)
    print_banner(__version__)

    if not paths:
        console.print("[error]No solution, project or directory given[/error]")
        sys.exit(int(ExitCode.INVALID_OPTIONS))

    try:
        credentials = build_credentials(
            github_username, github_token, github_token_stdin, nuget_username, nuget_password
        )
    except ConfigurationError as e:
        logger.error(str(e))
        print_final_failure(str(e))
        sys.exit(int(ExitCode.INVALID_OPTIONS))

    options = RunOptions(
        project_paths=list(paths),
        output_dir=output_dir,
        filename=filename,
        output_format=FORMAT_XML if use_xml else FORMAT_JSON,
        framework=framework,
        runtime=runtime,
        scan_project_references=scan_project_references,
        restore=not disable_package_restore,
        exclude_dev=exclude_dev,
        conflict_policy=ConflictPolicy.FAIL if fail_on_conflict else ConflictPolicy.KEEP,
        enrich=enrich,
        enable_github_licenses=enable_github_licenses,
        nuget_url=nuget_url,
        max_workers=max_workers,
        request_timeout=request_timeout,
        run_timeout=run_timeout,
        credentials=credentials,
        root_name=root_name,
        metadata_template=metadata_template,
        spec_version=spec_version,
    )

    token = CancellationToken()
    try:
        with cancel_on_interrupt(token):
            result = run_pipeline(options, cancel_token=token)
    except OperationCancelledError as e:
        print_final_failure(f"Cancelled: {e}")
        sys.exit(EXIT_CANCELLED)

    report(result)
    sys.exit(int(result.exit_code))


def main() -> None:
    """Console script entry point."""
    cli()
