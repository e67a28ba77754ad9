"""NuGet data source: reads license and author metadata from package manifests."""

import xml.etree.ElementTree as ET
from typing import Optional
from urllib.parse import quote

import requests

from solution_sbom._graph import ComponentIdentity
from solution_sbom.exceptions import EnrichmentSourceError, RateLimitedError, SourceAuthError
from solution_sbom.logging_config import logger

from ..license_utils import license_from_url, normalize_license, normalize_license_list
from ..metadata import Credentials, SourceMetadata

SOURCE_NAME = "nuget.org"
NUGET_FLAT_CONTAINER = "https://api.nuget.org/v3-flatcontainer"
DEFAULT_TIMEOUT = 10  # seconds - flat container is served from a CDN


def parse_nuspec(content: bytes, source_name: str) -> Optional[SourceMetadata]:
    """
    Normalize a .nuspec manifest into SourceMetadata.

    Namespaces differ between nuspec schema versions, so elements are
    matched by local name.

    Args:
        content: Raw nuspec XML
        source_name: Name recorded as the source of each field

    Returns:
        SourceMetadata, or None if the manifest has no metadata element

    Raises:
        EnrichmentSourceError: If the manifest is not well-formed XML
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise EnrichmentSourceError(f"Invalid nuspec XML: {e}")

    metadata = root.find("{*}metadata")
    if metadata is None:
        return None

    def text(tag: str) -> Optional[str]:
        element = metadata.find(f"{{*}}{tag}")
        if element is None or not element.text:
            return None
        return element.text.strip() or None

    licenses = []
    license_element = metadata.find("{*}license")
    if license_element is not None and license_element.get("type", "").lower() == "expression":
        expression = normalize_license(license_element.text)
        if expression:
            licenses.append(expression)

    license_url = text("licenseUrl")
    if not licenses:
        from_url = license_from_url(license_url)
        if from_url:
            licenses.append(from_url)

    repository_url = None
    repository_element = metadata.find("{*}repository")
    if repository_element is not None:
        repository_url = repository_element.get("url") or None

    vendor = text("authors") or text("owners")

    field_sources = {}
    if licenses:
        field_sources["licenses"] = source_name
    if vendor:
        field_sources["vendor"] = source_name

    return SourceMetadata(
        licenses=normalize_license_list(licenses),
        vendor=vendor,
        repository_url=repository_url,
        project_url=text("projectUrl"),
        license_url=license_url,
        source=source_name,
        field_sources=field_sources,
    )


class NuGetSource:
    """
    Data source for NuGet packages.

    Reads the package's .nuspec from a v3 flat container feed. Works with
    nuget.org and with private feeds that expose a flat container,
    optionally authenticating with basic auth.

    Priority: 10 (package registry, authoritative)
    Supports: nuget components
    """

    def __init__(self, base_url: str = NUGET_FLAT_CONTAINER, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def priority(self) -> int:
        return 10

    def supports(self, identity: ComponentIdentity) -> bool:
        return identity.ecosystem == "nuget"

    def manifest_url(self, identity: ComponentIdentity) -> str:
        package_id = quote(identity.name.lower(), safe="")
        version = quote(identity.version.lower(), safe="")
        return f"{self._base_url}/{package_id}/{version}/{package_id}.nuspec"

    def fetch(
        self,
        identity: ComponentIdentity,
        session: requests.Session,
        credentials: Credentials,
        known: Optional[SourceMetadata] = None,
    ) -> Optional[SourceMetadata]:
        """
        Fetch the nuspec for a package version.

        Returns:
            SourceMetadata if the manifest exists, None on 404
        """
        url = self.manifest_url(identity)
        auth = (credentials.username or "", credentials.token) if credentials.token else None

        logger.debug(f"Fetching NuGet manifest for: {identity}")
        response = session.get(url, timeout=self._timeout, auth=auth)

        if response.status_code == 200:
            return parse_nuspec(response.content, self.name)
        if response.status_code == 404:
            logger.debug(f"Package not found on NuGet feed: {identity}")
            return None
        if response.status_code in (401, 403):
            raise SourceAuthError(f"NuGet feed rejected credentials (HTTP {response.status_code})")
        if response.status_code == 429:
            raise RateLimitedError("NuGet feed rate limit exceeded")
        raise EnrichmentSourceError(f"NuGet feed returned HTTP {response.status_code}")
