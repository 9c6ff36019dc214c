from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Callable

from dashboard.schemas.listing import DateRange, FilterCriteria
from dashboard.services.field_values import (
    calendar_day,
    field_value,
    normalize_text,
    parse_bool,
    parse_number,
)

Predicate = Callable[[Any], bool]


def _matches_search(record: Any, query: str, searchable_fields: Sequence[str]) -> bool:
    for path in searchable_fields:
        value = field_value(record, path)
        if value is None:
            continue
        if query in normalize_text(value):
            return True
    return False


def _values_equal(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    if isinstance(actual, bool):
        return parse_bool(expected) is actual
    actual_number = parse_number(actual)
    expected_number = parse_number(expected)
    if actual_number is not None and expected_number is not None:
        return actual_number == expected_number
    return normalize_text(str(actual).strip()) == normalize_text(str(expected).strip())


def _within_range(record: Any, date_field: str | None, date_range: DateRange) -> bool:
    if date_range.is_empty or not date_field:
        return True
    day = calendar_day(field_value(record, date_field))
    if day is None:
        return False
    if date_range.date_from is not None and day < date_range.date_from:
        return False
    if date_range.date_to is not None and day > date_range.date_to:
        return False
    return True


def build_predicate(
    criteria: FilterCriteria,
    *,
    searchable_fields: Sequence[str] = (),
    date_field: str | None = None,
    field_paths: Mapping[str, str] | None = None,
) -> Predicate:
    """Compose search, equality and date-range criteria into one AND-ed record test.

    ``field_paths`` maps the public filter names used in ``criteria.equality_filters``
    to record paths; names without a mapping are used as paths directly.
    """
    query = normalize_text(criteria.search_text.strip()) if criteria.search_text else ""
    paths = dict(field_paths or {})
    equality = [(paths.get(name, name), value) for name, value in criteria.active_equality_filters().items()]
    date_range = criteria.date_range

    def _predicate(record: Any) -> bool:
        if query and not _matches_search(record, query, searchable_fields):
            return False
        for path, expected in equality:
            if not _values_equal(field_value(record, path), expected):
                return False
        return _within_range(record, date_field, date_range)

    return _predicate


def filter_records(records: Sequence[Any], predicate: Predicate) -> list[Any]:
    return [record for record in records if predicate(record)]
