from __future__ import annotations

from typing import Any, Mapping

from .errors import MissingField


# Spellings HTML checkboxes and api callers send for "true".
_TRUE_VALUES = {"1", "t", "true", "yes", "on"}


def parse_bool(value: Any) -> bool:
    """Form checkbox / flag -> bool. Anything unrecognized is False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def form_str(form: Mapping[str, Any], name: str) -> str:
    """Trimmed string value of a form field ('' when absent)."""
    value = form.get(name)
    if value is None:
        return ""
    return str(value).strip()


def require_str(form: Mapping[str, Any], name: str, message: str | None = None) -> str:
    """Like form_str but raises MissingField when empty."""
    value = form_str(form, name)
    if not value:
        raise MissingField(name, message)
    return value


def parse_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default
