"""Field-level diffs between entity snapshots, used to fill in history entries.

Pure functions only. Values are JSON-like: ``None``, bools, numbers, strings,
lists and mappings. A key missing from a snapshot is treated the same as a
key holding ``None``.
"""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from recordkeeper.domain.entities import FieldChange

DEFAULT_EXCLUDED_FIELDS: frozenset[str] = frozenset({"id", "createdAt", "updatedAt"})


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality for JSON-like values.

    ``None`` equals only ``None``; booleans never equal numbers; lists compare
    in order; mappings need identical key sets.
    """
    if a is b:
        return True
    if a is None or b is None:
        return False

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if set(a.keys()) != set(b.keys()):
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    if type(a) is not type(b):
        return False
    try:
        return bool(a == b)
    except Exception:
        return False


def compute_changes(
    old: Mapping[str, Any] | None,
    new: Mapping[str, Any],
    excluded: Iterable[str] = DEFAULT_EXCLUDED_FIELDS,
) -> list[FieldChange]:
    """Compute the top-level fields that differ between two snapshots.

    Args:
        old: State before the mutation, or None for a creation.
        new: State after the mutation.
        excluded: Field names never reported (bookkeeping fields by default).

    Returns:
        One FieldChange per differing field, old-snapshot keys first.
    """
    skip = frozenset(excluded)
    changes: list[FieldChange] = []

    if old is None:
        for key, value in new.items():
            if key in skip or _is_empty(value):
                continue
            changes.append(FieldChange(field=key, old_value=None, new_value=value))
        return changes

    for key in _union_keys(old, new):
        if key in skip:
            continue
        old_value = old.get(key)
        new_value = new.get(key)
        if not deep_equal(old_value, new_value):
            changes.append(FieldChange(field=key, old_value=old_value, new_value=new_value))

    return changes


def compute_changes_flat(
    old: Mapping[str, Any] | None,
    new: Mapping[str, Any],
    excluded: Iterable[str] = DEFAULT_EXCLUDED_FIELDS,
    prefix: str = "",
) -> list[FieldChange]:
    """Like compute_changes, but descends into nested mappings.

    A change inside ``address`` is reported as ``address.prefecture`` rather
    than as a change of the whole ``address`` value. Lists are compared as a
    whole. A field is skipped when either its own key or its dotted path is
    in ``excluded``.
    """
    changes: list[FieldChange] = []
    _flatten_and_compare(old, new, prefix, changes, frozenset(excluded))
    return changes


def _flatten_and_compare(
    old_obj: Mapping[str, Any] | None,
    new_obj: Mapping[str, Any],
    prefix: str,
    changes: list[FieldChange],
    excluded: frozenset[str],
) -> None:
    creating = old_obj is None
    old_obj = old_obj or {}

    for key in _union_keys(old_obj, new_obj):
        path = f"{prefix}.{key}" if prefix else key
        if key in excluded or path in excluded:
            continue

        old_value = old_obj.get(key)
        new_value = new_obj.get(key)

        if creating and _is_empty(new_value):
            continue

        if isinstance(old_value, Mapping) and isinstance(new_value, Mapping):
            _flatten_and_compare(old_value, new_value, path, changes, excluded)
        elif not deep_equal(old_value, new_value):
            changes.append(FieldChange(field=path, old_value=old_value, new_value=new_value))


def _union_keys(old: Mapping[str, Any], new: Mapping[str, Any]) -> list[str]:
    keys = list(old.keys())
    seen = set(keys)
    keys.extend(key for key in new.keys() if key not in seen)
    return keys


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


# ── Presentation helpers ─────────────────────────────────────────────

_ABSENT_LABEL = "(なし)"

FIELD_LABELS: dict[str, str] = {
    "name": "名前",
    "nameKana": "フリガナ",
    "phone": "電話番号",
    "mobile": "携帯番号",
    "email": "メールアドレス",
    "memo": "備考",
    "stage": "ステージ",
    "assignedTo": "担当者",
    "amount": "金額",
    "title": "タイトル",
    "templeName": "寺院名",
    "relationshipType": "関係性タイプ",
    "confidence": "信頼度",
    "description": "説明",
    "address.postalCode": "郵便番号",
    "address.prefecture": "都道府県",
    "address.city": "市区町村",
    "address.town": "町域",
    "address.streetNumber": "番地",
    "address.building": "建物名",
    "address.full": "住所全体",
}


def get_field_label(field: str) -> str:
    """Display label for a field path, falling back to the path itself."""
    return FIELD_LABELS.get(field, field)


def format_change(change: FieldChange) -> str:
    """Render a change as ``field: old → new``."""
    return f"{change.field}: {_format_value(change.old_value)} → {_format_value(change.new_value)}"


def _format_value(value: Any) -> str:
    if value is None:
        return _ABSENT_LABEL
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
