"""Argument models and path helpers shared by several domain modules."""

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


def segment(value: str) -> str:
    """Percent-encode one caller-supplied path segment.

    Slashes are encoded, and so are the dots of a ``.`` or ``..`` segment,
    so the value can never address a different endpoint.
    """
    encoded = quote(value, safe="")
    if not encoded.strip("."):
        encoded = encoded.replace(".", "%2E")
    return encoded


class PackageInput(BaseModel):
    """Input for tools that act on one hosting package."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    package_id: str = Field(..., description="20i hosting package ID", min_length=1)


class PackageDomainInput(BaseModel):
    """Input for tools that act on one domain within a hosting package."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    package_id: str = Field(..., description="20i hosting package ID", min_length=1)
    domain_id: str = Field(..., description="Domain ID or domain name", min_length=1)
