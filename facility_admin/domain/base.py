"""
Shared helpers for domain dataclasses.

Backend payloads are treated as authoritative: keys the client does not
model are preserved in ``extra_fields`` rather than dropped, matching the
dynamic-field pattern used across the domain package.
"""

from dataclasses import fields
from typing import Any, Dict, Tuple


def split_known_fields(cls, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Split a backend payload into dataclass fields and extra fields.

    Args:
        cls: Dataclass type with an ``extra_fields`` attribute
        data: Raw dictionary from the API

    Returns:
        Tuple of (core_data, extra_data)
    """
    core_fields = {f.name for f in fields(cls) if f.name != "extra_fields"}
    core_data = {k: v for k, v in data.items() if k in core_fields}
    extra_data = {k: v for k, v in data.items() if k not in core_fields}
    return core_data, extra_data


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove keys whose value is None (optional payload fields)."""
    return {k: v for k, v in data.items() if v is not None}


def coerce_enum(enum_cls, value: Any, default: Any = None) -> Any:
    """
    Convert a backend value to a member of ``enum_cls``.

    Empty values give ``default``. Values the client does not know yet are
    kept as the raw string instead of failing the whole payload.
    """
    if value is None or value == "":
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return value


def enum_value(value: Any) -> Any:
    """Plain value of an enum member, or the raw value itself."""
    return getattr(value, "value", value)
