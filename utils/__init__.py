"""Shared helpers: response casing, diff-before-write and row ids."""
from utils.case import dict_keys_to_camel, to_camel_key
from utils.diff import apply_fields, diff_fields, present
from utils.ids import new_id

__all__ = [
    "to_camel_key",
    "dict_keys_to_camel",
    "diff_fields",
    "apply_fields",
    "present",
    "new_id",
]
