"""solution-sbom: consolidated SBOM graphs for multi-project .NET solutions."""

from importlib.metadata import PackageNotFoundError, version


def _get_version() -> str:
    """Installed distribution version, or "unknown" when running from a source tree."""
    try:
        return version("solution-sbom")
    except PackageNotFoundError:
        return "unknown"


__version__ = _get_version()
