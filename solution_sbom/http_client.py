"""HTTP client utilities with consistent user agent and retry behaviour."""

from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__

USER_AGENT = f"solution-sbom/{__version__}"

# Statuses retried with backoff before a source sees the response
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def get_default_headers(token: Optional[str] = None) -> dict:
    """
    Get default HTTP headers with user agent.

    Args:
        token: Optional bearer token to include

    Returns:
        Dictionary of HTTP headers
    """
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def create_session(retries: int = 3, backoff_factor: float = 1.0, pool_size: int = 16) -> requests.Session:
    """
    Create a requests session with retry and connection pooling.

    Retries apply to connection errors and to the statuses in
    RETRY_STATUS_CODES, honouring Retry-After. Once retries are
    exhausted the final response is returned to the caller instead of
    raising, so sources can classify it (rate limit, server error).

    Args:
        retries: Total retry attempts per request
        backoff_factor: Exponential backoff factor between attempts
        pool_size: Connection pool size, should be >= worker count

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    session.headers.update(get_default_headers())

    retry_strategy = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset(["GET", "HEAD"]),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=pool_size,
        pool_maxsize=pool_size,
        max_retries=retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
