"""
Diff-before-write helpers: only columns whose in-memory value differs from the
persisted row are written, so fields edited elsewhere between steps are not clobbered.
"""
from enum import Enum
from typing import Any


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, Enum):
        return value.value
    return value


def diff_fields(row: Any, values: dict[str, Any]) -> dict[str, Any]:
    """Return the subset of ``values`` that differs from the attributes of ``row``."""
    changed: dict[str, Any] = {}
    for key, new in values.items():
        new = _normalize(new)
        current = _normalize(getattr(row, key, None))
        if isinstance(new, (int, float)) and isinstance(current, (int, float)) and not isinstance(new, bool):
            if float(new) == float(current):
                continue
        elif new == current:
            continue
        changed[key] = new
    return changed


def apply_fields(row: Any, changes: dict[str, Any]) -> bool:
    """Set ``changes`` on ``row``; return True when anything was written."""
    for key, value in changes.items():
        setattr(row, key, value)
    return bool(changes)


def present(values: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is missing, so absent form fields never blank a column."""
    return {k: v for k, v in values.items() if _normalize(v) is not None}
