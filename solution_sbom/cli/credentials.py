"""Credential resolution for metadata sources.

Precedence per value: explicit command-line value, then stdin (only when
explicitly requested), then environment variable, then anonymous.
"""

import os
from typing import Mapping, Optional, TextIO

from ..exceptions import ConfigurationError

# Environment variables consulted when no explicit value is given
GITHUB_USERNAME_ENV = "GITHUB_USERNAME"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
NUGET_USERNAME_ENV = "NUGET_USERNAME"
NUGET_PASSWORD_ENV = "NUGET_PASSWORD"


def read_secret_from_stdin(stream: TextIO) -> str:
    """
    Read a secret from the first line of a stream.

    Raises:
        ConfigurationError: If the stream is empty
    """
    value = stream.readline().strip()
    if not value:
        raise ConfigurationError("Expected a token on stdin but none was provided")
    return value


def resolve_value(
    cli_value: Optional[str],
    env_name: str,
    environ: Optional[Mapping[str, str]] = None,
    stdin: Optional[TextIO] = None,
) -> Optional[str]:
    """
    Resolve one credential value.

    Args:
        cli_value: Value passed on the command line
        env_name: Environment variable to fall back to
        environ: Environment mapping (defaults to os.environ)
        stdin: Stream to read from; only consulted when given

    Returns:
        The resolved value, or None for anonymous access
    """
    if cli_value:
        return cli_value
    if stdin is not None:
        return read_secret_from_stdin(stdin)
    env = os.environ if environ is None else environ
    return env.get(env_name) or None
