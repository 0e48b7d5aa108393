from __future__ import annotations

from typing import Any, Mapping

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Text fields must be strings")
    value = value.strip()
    return value or None


def require_field(data: Mapping[str, Any], key: str, field_name: str | None = None) -> str:
    return require_non_empty(data.get(key), field_name or key)


def require_id_list(value: Any, field_name: str) -> list[str]:
    if not isinstance(value, list) or not value:
        raise ValidationError(f"{field_name} must be a non-empty list")
    out: list[str] = []
    for item in value:
        item = require_non_empty(item, field_name)
        if item not in out:
            out.append(item)
    return out
