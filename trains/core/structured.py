"""Helpers for safely reading untyped TOML/JSON payloads.

Used at the boundaries where `gh api` output, NPM registry documents and
the config file are ingested.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    if not isinstance(value, bool):
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested table (dict with string keys)."""
    return as_str_dict(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a list of non-empty strings; None if any item is not a string."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            return None
        if item.strip():
            out.append(item.strip())
    return out


def get_path(data: Mapping[str, object], *keys: str) -> object:
    """Walk nested tables (GraphQL responses) and return the leaf or None."""
    current: object = data
    for key in keys:
        table = as_str_dict(current)
        if table is None:
            return None
        current = table.get(key)
    return current
