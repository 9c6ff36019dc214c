from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Literal

from dashboard.schemas.listing import SortState
from dashboard.services.field_values import (
    field_value,
    normalize_text,
    parse_bool,
    parse_instant,
    parse_number,
)

FieldKind = Literal["text", "number", "date", "bool"]


class UnknownSortKey(ValueError):
    def __init__(self, key: str):
        super().__init__(f'Ordenamiento no disponible para el campo "{key}"')
        self.key = key


@dataclass(frozen=True)
class FieldSpec:
    path: str
    kind: FieldKind = "text"


DEFAULT_TIE_BREAKERS: tuple[FieldSpec, ...] = (
    FieldSpec("createdAt", "date"),
    FieldSpec("id", "number"),
)


def _sort_value(value: Any, kind: FieldKind):
    if value is None:
        return None
    if kind == "number":
        return parse_number(value)
    if kind == "date":
        return parse_instant(value)
    if kind == "bool":
        flag = parse_bool(value)
        return None if flag is None else int(flag)
    text = str(value)
    # Accent/case-insensitive key first, raw text only separates otherwise-equal spellings.
    return (normalize_text(text), text)


def compare_field(a: Any, b: Any, spec: FieldSpec) -> int:
    left = _sort_value(field_value(a, spec.path), spec.kind)
    right = _sort_value(field_value(b, spec.path), spec.kind)
    if left is None and right is None:
        return 0
    # Missing values sort before present ones.
    if left is None:
        return -1
    if right is None:
        return 1
    return (left > right) - (left < right)


def compare(
    a: Any,
    b: Any,
    sort_state: SortState,
    *,
    fields: Mapping[str, FieldSpec],
    tie_breakers: Sequence[FieldSpec] = DEFAULT_TIE_BREAKERS,
) -> int:
    spec = fields.get(sort_state.key)
    if spec is None:
        raise UnknownSortKey(sort_state.key)
    primary = compare_field(a, b, spec)
    if primary:
        return -primary if sort_state.direction == "desc" else primary
    # Tie-breakers always ascending, independent of the chosen direction.
    for tie_breaker in tie_breakers:
        result = compare_field(a, b, tie_breaker)
        if result:
            return result
    return 0


def sort_records(
    records: Sequence[Any],
    sort_state: SortState,
    *,
    fields: Mapping[str, FieldSpec],
    tie_breakers: Sequence[FieldSpec] = DEFAULT_TIE_BREAKERS,
) -> list[Any]:
    if sort_state.key not in fields:
        raise UnknownSortKey(sort_state.key)
    key = cmp_to_key(lambda a, b: compare(a, b, sort_state, fields=fields, tie_breakers=tie_breakers))
    return sorted(records, key=key)
