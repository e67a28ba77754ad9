"""License normalization utilities for component enrichment.

License identification is a legal matter, so normalization is
conservative: valid SPDX identifiers and expressions are kept, a short
list of exact aliases is mapped, and anything else is preserved as
written. Nothing is guessed.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import unquote, urlparse

from license_expression import ExpressionError, get_spdx_licensing

logger = logging.getLogger(__name__)

_spdx_licensing = get_spdx_licensing()

# SPDX values that carry no license information
SPDX_NO_INFORMATION = {"NOASSERTION", "NONE"}

# EXACT mappings only, matched case-insensitively
LICENSE_EXACT_ALIASES = {
    "mit license": "MIT",
    "the mit license": "MIT",
    "apache license 2.0": "Apache-2.0",
    "apache license, version 2.0": "Apache-2.0",
    "apache 2.0": "Apache-2.0",
    "apache-2": "Apache-2.0",
    "bsd 3-clause": "BSD-3-Clause",
    "new bsd license": "BSD-3-Clause",
    "bsd 2-clause": "BSD-2-Clause",
    "simplified bsd license": "BSD-2-Clause",
    "isc license": "ISC",
    "mpl 2.0": "MPL-2.0",
    "mozilla public license 2.0": "MPL-2.0",
    "ms-pl": "MS-PL",
    "microsoft public license": "MS-PL",
}

# nuget.org serves license expressions at https://licenses.nuget.org/<expression>
NUGET_LICENSE_HOST = "licenses.nuget.org"

# Threshold for considering a string as full license text (not an identifier)
LICENSE_TEXT_LENGTH_THRESHOLD = 100


def validate_spdx_expression(license_str: str) -> bool:
    """
    Validate a license string against the official SPDX license list.

    Args:
        license_str: License string to validate (ID or expression)

    Returns:
        True if it's a valid SPDX identifier or expression
    """
    if not license_str:
        return False

    if license_str.startswith("LicenseRef-"):
        return re.match(r"^LicenseRef-[a-zA-Z0-9.\-]+$", license_str) is not None

    try:
        parsed = _spdx_licensing.parse(license_str, validate=False)
        return len(_spdx_licensing.unknown_license_keys(parsed)) == 0
    except ExpressionError:
        return False


def is_license_text(license_str: str) -> bool:
    """Check if a string looks like full license text rather than an identifier."""
    if not license_str:
        return False
    return len(license_str) > LICENSE_TEXT_LENGTH_THRESHOLD or license_str.count("\n") > 2


def normalize_license(license_str: Optional[str]) -> Optional[str]:
    """
    Normalize a raw license string.

    Args:
        license_str: Raw license string from a source

    Returns:
        SPDX identifier/expression, an exact alias target, the original
        string when unrecognized, or None when it carries no information
        (empty, NOASSERTION, or full license text)
    """
    if not license_str:
        return None

    stripped = license_str.strip()
    if not stripped or stripped.upper() in SPDX_NO_INFORMATION:
        return None

    if is_license_text(stripped):
        logger.debug("Ignoring full license text in place of an identifier")
        return None

    if validate_spdx_expression(stripped):
        try:
            return str(_spdx_licensing.parse(stripped, validate=False))
        except ExpressionError:
            return stripped

    alias = LICENSE_EXACT_ALIASES.get(stripped.lower())
    if alias:
        return alias

    logger.debug(f"Unrecognized license string: '{stripped}'")
    return stripped


def license_from_url(url: Optional[str]) -> Optional[str]:
    """
    Derive a license expression from a license URL, when the URL encodes one.

    Only nuget.org license URLs (https://licenses.nuget.org/MIT) are
    translated; any other URL returns None.
    """
    if not url:
        return None
    parsed = urlparse(url.strip())
    if parsed.netloc.lower() != NUGET_LICENSE_HOST:
        return None
    expression = unquote(parsed.path.strip("/"))
    if not expression:
        return None
    return normalize_license(expression)


def normalize_license_list(licenses: List[Optional[str]]) -> List[str]:
    """Normalize a list of raw license strings, dropping empties and duplicates in order."""
    normalized: List[str] = []
    for raw in licenses:
        value = normalize_license(raw)
        if value and value not in normalized:
            normalized.append(value)
    return normalized
