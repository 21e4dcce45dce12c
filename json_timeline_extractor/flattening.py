from __future__ import annotations

import json
from typing import Any, Dict, List

from .dates import to_iso_string
from .paths import join_path

ENTITY_TABLE_COLUMNS = [
    '_id',
    '_startDate',
    '_endDate',
    '_yValue',
    '_sourceArray',
    '_sourceFile',
    '_duration',
]


def format_cell(val: Any) -> Any:
    """Collapse list values into one table cell."""
    if isinstance(val, list):
        if all(isinstance(v, (str, int, float, bool)) or v is None for v in val):
            return ", ".join(["" if v is None else str(v) for v in val])
        try:
            return json.dumps(val, ensure_ascii=False)
        except TypeError:
            return str(val)
    return val


def flatten_object(data: Any, prefix: str = '') -> Dict[str, Any]:
    """Flatten nested dicts into dot-path keys; lists become single cells."""
    flat: Dict[str, Any] = {}
    if not isinstance(data, dict):
        if prefix:
            flat[prefix] = format_cell(data)
        return flat

    for key, value in data.items():
        new_key = join_path(prefix, key)
        if isinstance(value, dict) and value:
            flat.update(flatten_object(value, new_key))
        else:
            flat[new_key] = format_cell(value)
    return flat


def flatten_entity_row(entity) -> Dict[str, Any]:
    """One table row: the flattened original data plus entity metadata columns."""
    row = flatten_object(entity.original_data)
    row.update({
        '_id': entity.id,
        '_startDate': to_iso_string(entity.start_date),
        '_endDate': to_iso_string(entity.end_date),
        '_yValue': format_cell(entity.y_value),
        '_sourceArray': entity.source_array,
        '_sourceFile': entity.source_file,
        '_duration': entity.duration_ms,
    })
    return row


def table_columns(rows: List[Dict[str, Any]]) -> List[str]:
    """Metadata columns first, then data columns in first-seen order."""
    columns: List[str] = list(ENTITY_TABLE_COLUMNS)
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns
