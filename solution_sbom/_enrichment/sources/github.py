"""GitHub data source: license lookup for packages hosted on GitHub."""

import re
from typing import Any, Optional, Tuple

import requests

from solution_sbom._graph import ComponentIdentity
from solution_sbom.exceptions import EnrichmentSourceError, RateLimitedError, SourceAuthError
from solution_sbom.http_client import get_default_headers
from solution_sbom.logging_config import logger

from ..license_utils import normalize_license
from ..metadata import Credentials, SourceMetadata

SOURCE_NAME = "github.com"
GITHUB_API_BASE = "https://api.github.com"
DEFAULT_TIMEOUT = 10  # seconds

# github.com/<owner>/<repo> in https, git+https, ssh and raw URLs
_GITHUB_REPO_PATTERN = re.compile(
    r"^(?:git\+)?(?:https?|git|ssh)://(?:[^@/]+@)?(?:www\.)?(?:raw\.githubusercontent\.com|github\.com)/"
    r"([A-Za-z0-9_.\-]+)/([A-Za-z0-9_.\-]+)",
    re.IGNORECASE,
)
_GITHUB_SSH_PATTERN = re.compile(r"^git@github\.com:([A-Za-z0-9_.\-]+)/([A-Za-z0-9_.\-]+)", re.IGNORECASE)


def parse_github_repository(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Extract (owner, repo) from a GitHub URL.

    Handles repository URLs as well as links into a repository such as
    ``https://github.com/owner/repo/blob/main/LICENSE``.
    """
    if not url:
        return None
    url = url.strip()
    match = _GITHUB_REPO_PATTERN.match(url) or _GITHUB_SSH_PATTERN.match(url)
    if not match:
        return None
    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        return None
    return owner, repo


class GitHubSource:
    """
    Data source for the GitHub license API.

    GitHub cannot be queried by package name, so this source only answers
    when a higher-priority source found a GitHub repository, project or
    license URL for the component.

    Priority: 50 (source-hosting platform, fallback)
    Supports: any ecosystem
    """

    def __init__(self, api_base: str = GITHUB_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return SOURCE_NAME

    @property
    def priority(self) -> int:
        return 50

    def supports(self, identity: ComponentIdentity) -> bool:
        return True

    def fetch(
        self,
        identity: ComponentIdentity,
        session: requests.Session,
        credentials: Credentials,
        known: Optional[SourceMetadata] = None,
    ) -> Optional[SourceMetadata]:
        """
        Look up the detected license of the component's GitHub repository.

        Returns:
            SourceMetadata with licenses, or None if no GitHub repository is known
            or GitHub detected no license
        """
        if known is None:
            return None
        repository = (
            parse_github_repository(known.repository_url)
            or parse_github_repository(known.project_url)
            or parse_github_repository(known.license_url)
        )
        if repository is None:
            logger.debug(f"No GitHub repository known for {identity}")
            return None

        owner, repo = repository
        # A username means basic auth; a bare token is sent as a bearer token
        auth = (credentials.username, credentials.token) if credentials.token and credentials.username else None
        headers = get_default_headers(token=None if auth else credentials.token)
        headers["Accept"] = "application/vnd.github+json"

        logger.debug(f"Fetching GitHub license for {owner}/{repo}")
        response = session.get(
            f"{self._api_base}/repos/{owner}/{repo}/license",
            headers=headers,
            auth=auth,
            timeout=self._timeout,
        )

        if response.status_code == 200:
            return self._normalize_response(owner, repo, response.json())
        if response.status_code == 404:
            logger.debug(f"No license detected by GitHub for {owner}/{repo}")
            return None
        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            raise RateLimitedError("GitHub API rate limit exceeded")
        if response.status_code in (401, 403):
            raise SourceAuthError(f"GitHub rejected credentials (HTTP {response.status_code})")
        raise EnrichmentSourceError(f"GitHub API returned HTTP {response.status_code}")

    def _normalize_response(self, owner: str, repo: str, data: Any) -> Optional[SourceMetadata]:
        if not isinstance(data, dict):
            raise EnrichmentSourceError(f"Unexpected GitHub license response for {owner}/{repo}")
        license_data = data.get("license")
        if not isinstance(license_data, dict):
            return None
        spdx_id = normalize_license(license_data.get("spdx_id"))
        if not spdx_id:
            return None
        return SourceMetadata(
            licenses=[spdx_id],
            repository_url=f"https://github.com/{owner}/{repo}",
            source=self.name,
            field_sources={"licenses": self.name},
        )
