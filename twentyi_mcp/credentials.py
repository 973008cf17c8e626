"""Credential resolution: environment variables first, then a local file."""

import os
import re
from pathlib import Path
from typing import Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from twentyi_mcp.config import (
    API_KEY_ENV,
    COMBINED_KEY_ENV,
    CREDENTIALS_FILE,
    OAUTH_KEY_ENV,
)
from twentyi_mcp.errors import CredentialError

logger = structlog.get_logger()

_FILE_PATTERNS = {
    "api_key": re.compile(r"Your general API key is:[ \t]*([a-zA-Z0-9]+)"),
    "oauth_key": re.compile(r"Your OAuth client key is:[ \t]*([a-zA-Z0-9]+)"),
    "combined_key": re.compile(r"Your combined API key is:[ \t]*([a-zA-Z0-9+]+)"),
}


class Credentials(BaseModel):
    """The three 20i API tokens. Values are kept out of ``repr``."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(..., min_length=1, repr=False)
    oauth_key: str = Field(..., min_length=1, repr=False)
    combined_key: str = Field(..., min_length=1, repr=False)


def _from_environment(environ: Mapping[str, str]) -> Optional[Credentials]:
    api_key = environ.get(API_KEY_ENV, "")
    oauth_key = environ.get(OAUTH_KEY_ENV, "")
    combined_key = environ.get(COMBINED_KEY_ENV, "")
    if not (api_key and oauth_key and combined_key):
        return None
    return Credentials(api_key=api_key, oauth_key=oauth_key, combined_key=combined_key)


def _from_file(path: Path) -> Credentials:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise CredentialError(
            f"Credentials not set in environment ({API_KEY_ENV}, {OAUTH_KEY_ENV}, "
            f"{COMBINED_KEY_ENV}) and fallback file {path} is unreadable: {reason}"
        ) from e

    tokens = {}
    missing = []
    for field, pattern in _FILE_PATTERNS.items():
        match = pattern.search(content)
        if match:
            tokens[field] = match.group(1)
        else:
            missing.append(field)

    if missing:
        raise CredentialError(
            f"Could not parse {', '.join(missing)} from credentials file {path}"
        )
    return Credentials(**tokens)


def resolve(
    environ: Optional[Mapping[str, str]] = None,
    path: Union[str, Path, None] = None,
) -> Credentials:
    """Resolve credentials from the environment, falling back to a local file.

    Args:
        environ: Mapping to read variables from. Defaults to ``os.environ``.
        path: Fallback file. Defaults to ``CREDENTIALS_FILE`` in the working
            directory.

    Raises:
        CredentialError: Neither source yields all three tokens.
    """
    credentials = _from_environment(os.environ if environ is None else environ)
    if credentials is not None:
        logger.info("credentials_resolved", source="environment")
        return credentials

    file_path = Path(path) if path is not None else Path.cwd() / CREDENTIALS_FILE
    credentials = _from_file(file_path)
    logger.info("credentials_resolved", source="file", path=str(file_path))
    return credentials
