"""
JSON Config Diff

Compares two parsed JSON configuration snapshots and flattens every
difference into a DiffEntry keyed by a dotted/bracketed path, e.g.
``external_email.enabled``, ``id:hello-world.version`` or ``[2]``.

Arrays are reconciled by the string ``id`` field of their object elements
whenever one side carries such ids; otherwise they are compared position by
position, and two objects that differ at the same position are reported as a
single whole-object change.
"""
import json
import math
import re
from enum import Enum
from typing import Any

from .schemas import ConfigDiff, DiffEntry

# Category whose platform-managed entries are dropped before comparison
SECRETS_CONFIG_TYPE = "Secrets"
RESERVED_SECRET_PREFIX = "SUPABASE_"

ROOT_PATH = "root"
MISSING = "null"
ID_FIELD = "id"

_EXPONENT = re.compile(r"e\+?(-?)0*(\d)")


class JsonKind(str, Enum):
    """The six kinds of value a parsed JSON document can hold."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def json_kind(value: Any) -> JsonKind:
    """Classify a value produced by ``json.loads``."""
    if value is None:
        return JsonKind.NULL
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def json_equal(a: Any, b: Any) -> bool:
    """
    Structural equality of two JSON values.

    Unlike ``==`` this never treats ``true`` as equal to ``1``. An integer
    never equals a float, so ``1`` and ``1.0`` differ.
    """
    kind = json_kind(a)
    if kind is not json_kind(b):
        return False

    if kind is JsonKind.ARRAY:
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))

    if kind is JsonKind.OBJECT:
        return a.keys() == b.keys() and all(json_equal(v, b[k]) for k, v in a.items())

    if kind is JsonKind.NUMBER:
        if isinstance(a, float) is not isinstance(b, float):
            return False
        if isinstance(a, float) and math.isnan(a) and math.isnan(b):
            return True

    return a == b


def format_value(value: Any) -> str:
    """
    Render a JSON value for display.

    Strings are returned as-is (no quotes), null becomes ``"null"`` and
    containers become compact JSON with sorted keys. Number exponents carry
    no ``+`` sign or leading zeros (``1e20``, ``1e-7``).
    """
    kind = json_kind(value)
    if kind is JsonKind.STRING:
        return value
    if kind is JsonKind.NULL:
        return MISSING
    if kind is JsonKind.BOOL:
        return "true" if value else "false"
    if kind is JsonKind.NUMBER:
        return _EXPONENT.sub(r"e\1\2", json.dumps(value))
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def is_reserved_secret(value: Any) -> bool:
    """True for secret entries managed by the platform itself (``SUPABASE_*``)."""
    if isinstance(value, dict):
        name = value.get("name")
        return isinstance(name, str) and name.startswith(RESERVED_SECRET_PREFIX)
    return False


def json_diff(config_type: str, source: Any, dest: Any) -> ConfigDiff | None:
    """
    Compare two configuration snapshots of the same category.

    Args:
        config_type: Category label, e.g. "Auth" or "Secrets"
        source: Parsed JSON of the source project
        dest: Parsed JSON of the destination project

    Returns:
        ConfigDiff named after the category, or None when nothing differs
    """
    diffs = calculate_diff(config_type, source, dest)
    if not diffs:
        return None
    return ConfigDiff(name=config_type, diffs=diffs)


def calculate_diff(config_type: str, source: Any, dest: Any) -> list[DiffEntry]:
    """Flat list of differences between ``source`` and ``dest``."""
    diffs: list[DiffEntry] = []

    if config_type == SECRETS_CONFIG_TYPE and isinstance(source, list) and isinstance(dest, list):
        source = [item for item in source if not is_reserved_secret(item)]
        dest = [item for item in dest if not is_reserved_secret(item)]

    diff_values("", source, dest, diffs)
    return diffs


def diff_values(path: str, source: Any, dest: Any, diffs: list[DiffEntry]) -> None:
    source_kind = json_kind(source)
    dest_kind = json_kind(dest)

    if source_kind is JsonKind.ARRAY and dest_kind is JsonKind.ARRAY:
        diff_arrays(path, source, dest, diffs)
    elif source_kind is JsonKind.OBJECT and dest_kind is JsonKind.OBJECT:
        diff_objects(path, source, dest, diffs)
    elif not json_equal(source, dest):
        _record(diffs, path or ROOT_PATH, format_value(source), format_value(dest))


def diff_objects(path: str, source: dict, dest: dict, diffs: list[DiffEntry]) -> None:
    for key, source_value in source.items():
        field_path = _child_path(path, key)
        if key in dest:
            diff_values(field_path, source_value, dest[key], diffs)
        else:
            _record(diffs, field_path, format_value(source_value), MISSING)

    for key, dest_value in dest.items():
        if key not in source:
            _record(diffs, _child_path(path, key), MISSING, format_value(dest_value))


def diff_arrays(path: str, source: list, dest: list, diffs: list[DiffEntry]) -> None:
    source_ids = to_id_map(source)
    dest_ids = to_id_map(dest)

    if source_ids is None and dest_ids is None:
        diff_by_index(path, source, dest, diffs)
    else:
        # An id-less side matches nothing: the other side is all added or all removed
        diff_by_id(path, source_ids or {}, dest_ids or {}, diffs)


def to_id_map(items: list) -> dict[str, Any] | None:
    """
    Map ``id -> element`` for object elements carrying a string ``id``.

    Returns None when no element qualifies. A repeated id keeps the last
    element seen.
    """
    id_map: dict[str, Any] = {}
    for item in items:
        if isinstance(item, dict):
            item_id = item.get(ID_FIELD)
            if isinstance(item_id, str):
                id_map[item_id] = item
    return id_map or None


def diff_by_id(
    path: str,
    source_ids: dict[str, Any],
    dest_ids: dict[str, Any],
    diffs: list[DiffEntry],
) -> None:
    for item_id, source_item in source_ids.items():
        item_path = _id_path(path, item_id)
        if item_id in dest_ids:
            diff_values(item_path, source_item, dest_ids[item_id], diffs)
        else:
            _record(diffs, item_path, format_value(source_item), MISSING)

    for item_id, dest_item in dest_ids.items():
        if item_id not in source_ids:
            _record(diffs, _id_path(path, item_id), MISSING, format_value(dest_item))


def diff_by_index(path: str, source: list, dest: list, diffs: list[DiffEntry]) -> None:
    for i in range(max(len(source), len(dest))):
        item_path = f"{path}[{i}]"

        if i < len(source) and i < len(dest):
            source_item, dest_item = source[i], dest[i]
            if isinstance(source_item, dict) and isinstance(dest_item, dict):
                # Objects without ids are reported whole, never field by field
                if not json_equal(source_item, dest_item):
                    _record(diffs, item_path, format_value(source_item), format_value(dest_item))
            else:
                diff_values(item_path, source_item, dest_item, diffs)
        elif i < len(source):
            _record(diffs, item_path, format_value(source[i]), MISSING)
        else:
            _record(diffs, item_path, MISSING, format_value(dest[i]))


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else str(key)


def _id_path(path: str, item_id: str) -> str:
    return _child_path(path, f"{ID_FIELD}:{item_id}")


def _record(diffs: list[DiffEntry], key: str, source_value: str, dest_value: str) -> None:
    diffs.append(DiffEntry(key=key, source_value=source_value, dest_value=dest_value))
