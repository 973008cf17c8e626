"""Shared validation helpers.

``check_arguments`` is the single presence/primitive-type check the
dispatcher runs against a tool's declared ``inputSchema`` before any handler
code executes. The remaining functions are reusable pydantic field
validators for the argument models in ``twentyi_mcp.modules``.
"""

import ipaddress
import re
from typing import Any, Dict, Iterable, List, Mapping

import pydantic

from twentyi_mcp.errors import ValidationError

_JSON_TYPES = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}

_DOMAIN_RE = re.compile(r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 8


def _matches_type(value: Any, json_type: str) -> bool:
    expected = _JSON_TYPES.get(json_type)
    if expected is None:
        return True
    # bool is an int subclass; JSON keeps them apart.
    if isinstance(value, bool) and json_type != "boolean":
        return False
    return isinstance(value, expected)


def check_arguments(schema: Mapping[str, Any], arguments: Mapping[str, Any]) -> None:
    """Check required names are present and declared primitive types match.

    Only properties with a plain ``type`` are type-checked; composite
    schemas (``anyOf``, ``$ref``) are left to the argument model.

    Raises:
        ValidationError: On the first offending field.
    """
    properties: Dict[str, Any] = schema.get("properties", {})

    for name in schema.get("required", []):
        if arguments.get(name) is None:
            raise ValidationError(name, "is required")

    for name, value in arguments.items():
        prop = properties.get(name)
        if not prop or value is None:
            continue
        json_type = prop.get("type")
        if isinstance(json_type, str) and not _matches_type(value, json_type):
            raise ValidationError(name, f"must be of type {json_type}")


def from_pydantic(exc: pydantic.ValidationError) -> ValidationError:
    """Name the first failing field of a pydantic error."""
    errors = exc.errors()
    if not errors:
        return ValidationError("arguments", str(exc))
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "arguments"
    return ValidationError(field, first.get("msg", "is invalid"))


# ─── Field validators ────────────────────────────────────────────────────────


def domain_name(value: str) -> str:
    """Validate a (sub)domain name and return it lower-cased."""
    if not _DOMAIN_RE.match(value):
        raise ValueError("must be a valid domain name")
    return value.lower()


def email_address(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValueError("must be a valid email address")
    return value


def ip_address(value: str) -> str:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        raise ValueError("must be a valid IP address") from None
    return value


def password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"must be at least {MIN_PASSWORD_LENGTH} characters long")
    return value


def non_empty_strings(values: Iterable[str]) -> List[str]:
    cleaned = [v.strip() for v in values]
    if any(not v for v in cleaned):
        raise ValueError("must not contain empty strings")
    return cleaned
