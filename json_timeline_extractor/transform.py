"""Merging, filtering and sorting of extracted entities for presentation.

Every function returns new lists; entities and their original data are never
modified.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .accessors import NOT_FOUND, resolve_path
from .extraction import stringify_value
from .flattening import flatten_entity_row
from .log_utils import setup_logger
from .models import DateRange, ExtractionRule, FilterState, TimelineEntity, VisualizationData

logger = setup_logger(__name__)

ENTITY_COLUMNS = ('id', 'startDate', 'endDate', 'yValue', 'sourceArray', 'sourceFile')

_ENTITY_ATTRIBUTES = {
    'id': 'id',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'yValue': 'y_value',
    'sourceArray': 'source_array',
    'sourceFile': 'source_file',
}


def transform(
    entities: Iterable[TimelineEntity],
    rules: Iterable[ExtractionRule],
    selected_files: Optional[List[str]] = None,
    filter_state: Optional[FilterState] = None,
) -> VisualizationData:
    """Filter and sort entities for display.

    Stages: selected files, enabled rule names, then the user filters of
    `filter_state`, then a stable sort by start date, most recent first.
    """
    rules = list(rules or [])
    selected_files = list(selected_files or [])
    filter_state = filter_state or FilterState()

    filtered = [e for e in entities if not selected_files or e.source_file in selected_files]

    enabled_arrays = {rule.name for rule in rules if rule.enabled}
    filtered = [e for e in filtered if e.source_array in enabled_arrays]

    filtered = apply_filters(filtered, filter_state)
    filtered = sorted(filtered, key=lambda e: e.start_date, reverse=True)

    logger.debug(f"transform kept {len(filtered)} entities")
    return VisualizationData(
        entities=filtered,
        rules=rules,
        selected_files=selected_files,
        filter_state=filter_state,
    )


def apply_filters(entities: Iterable[TimelineEntity], filter_state: FilterState) -> List[TimelineEntity]:
    filtered = list(entities)

    if filter_state.date_range is not None:
        window = filter_state.date_range
        filtered = [e for e in filtered if window.overlaps(e.start_date, e.end_date)]

    if filter_state.array_types:
        filtered = [e for e in filtered if e.source_array in filter_state.array_types]

    for column, filter_value in filter_state.column_filters.items():
        if filter_value is None or filter_value == '':
            continue
        filtered = [e for e in filtered if matches_filter(get_column_value(e, column), filter_value)]

    return filtered


def get_column_value(entity: TimelineEntity, column: str) -> Any:
    """Value of a fixed entity column, else a path lookup into the original data.

    Returns NOT_FOUND when the column is absent.
    """
    attribute = _ENTITY_ATTRIBUTES.get(column)
    if attribute is not None:
        return getattr(entity, attribute)
    return resolve_path(entity.original_data, column)


def matches_filter(value: Any, filter_value: Any) -> bool:
    if value is None or value is NOT_FOUND:
        return False

    if isinstance(filter_value, str):
        return filter_value.lower() in stringify_value(value).lower()

    if isinstance(filter_value, bool):
        return stringify_value(value) == stringify_value(filter_value)

    if isinstance(filter_value, (int, float)):
        if isinstance(value, bool):
            return False
        try:
            return float(value) == filter_value
        except (TypeError, ValueError):
            return False

    if isinstance(filter_value, datetime):
        return isinstance(value, datetime) and value == filter_value

    if isinstance(filter_value, (list, tuple, set, frozenset)):
        try:
            return value in filter_value
        except TypeError:
            return False

    return stringify_value(value) == stringify_value(filter_value)


def merge_entity_groups(groups: Iterable[Iterable[TimelineEntity]]) -> List[TimelineEntity]:
    """Concatenate groups, keeping the first entity for each (file, array, id)."""
    merged: List[TimelineEntity] = []
    seen = set()
    for group in groups:
        for entity in group:
            key = entity.dedup_key
            if key not in seen:
                seen.add(key)
                merged.append(entity)
    return merged


def group_entities_by_array(entities: Iterable[TimelineEntity]) -> Dict[str, List[TimelineEntity]]:
    groups: Dict[str, List[TimelineEntity]] = {}
    for entity in entities:
        groups.setdefault(entity.source_array, []).append(entity)
    return groups


def calculate_date_range(entities: Iterable[TimelineEntity]) -> Optional[DateRange]:
    entities = list(entities)
    if not entities:
        return None
    return DateRange(
        start=min(e.start_date for e in entities),
        end=max(e.end_date for e in entities),
    )


def calculate_y_axis_range(entities: Iterable[TimelineEntity]) -> Optional[Tuple[float, float]]:
    """(min, max) over numeric y-values; None if there are none."""
    values = [
        e.y_value for e in entities
        if isinstance(e.y_value, (int, float)) and not isinstance(e.y_value, bool)
    ]
    if not values:
        return None
    return min(values), max(values)


def get_unique_column_values(entities: Iterable[TimelineEntity], column: str) -> List[Any]:
    values: List[Any] = []
    for entity in entities:
        value = get_column_value(entity, column)
        if value is None or value is NOT_FOUND or isinstance(value, (dict, list)):
            continue
        if value not in values:
            values.append(value)
    try:
        return sorted(values)
    except TypeError:
        return sorted(values, key=stringify_value)


def validate_entities(entities: Iterable[TimelineEntity]):
    """Split entities into (valid, invalid) where invalid holds (entity, errors) pairs."""
    valid: List[TimelineEntity] = []
    invalid: List[Tuple[TimelineEntity, List[str]]] = []

    for entity in entities:
        errors: List[str] = []
        if not entity.id:
            errors.append('Missing ID')
        if not isinstance(entity.start_date, datetime):
            errors.append('Invalid start date')
        if not isinstance(entity.end_date, datetime):
            errors.append('Invalid end date')
        if not errors and entity.start_date > entity.end_date:
            errors.append('Start date must not be after end date')
        if not entity.source_array:
            errors.append('Missing source array')
        if not entity.source_file:
            errors.append('Missing source file')

        if errors:
            invalid.append((entity, errors))
        else:
            valid.append(entity)

    return valid, invalid


def generate_table_data(entities: Iterable[TimelineEntity]) -> List[Dict[str, Any]]:
    return [flatten_entity_row(entity) for entity in entities]
