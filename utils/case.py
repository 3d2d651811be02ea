"""
camelCase response keys for the frontend. Request bodies need no conversion: the
schemas accept both spellings through pydantic aliases.
"""
from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel


def to_camel_key(s: str) -> str:
    """'address_line_1' -> 'addressLine1'; keys that are already camelCase pass through."""
    return to_camel(s) if "_" in s else s


def dict_keys_to_camel(obj: Any) -> Any:
    """Recursively camelCase dict keys of a service-layer dict; enum values become plain strings."""
    if isinstance(obj, dict):
        return {to_camel_key(k): dict_keys_to_camel(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [dict_keys_to_camel(x) for x in obj]
    if isinstance(obj, Enum):
        return obj.value
    return obj
