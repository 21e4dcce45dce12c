from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Dict, List, Optional

import gradio as gr

from .config import settings
from .dates import parse_date
from .extraction import extract_from_document
from .flattening import table_columns
from .io_utils import DocumentLoadError, file_name_from_path, read_json_content, upload_path
from .log_utils import setup_logger
from .models import DateRange, ExtractionRule, FilterState, TimelineEntity
from .rules import RuleImportError, RuleStore, parse_rules_json, path_style_notes, suggest_rules
from .schema_utils import extract_all_keys, list_available_paths
from .transform import ENTITY_COLUMNS, generate_table_data, merge_entity_groups, transform

logger = setup_logger(__name__)


def load_documents_handler(file_objs):
    """Parse uploaded JSON files into {file name: document}."""
    if not file_objs:
        return {}, "No file uploaded.", gr.update(choices=[], value=[]), []

    if not isinstance(file_objs, list):
        file_objs = [file_objs]

    documents: Dict[str, Any] = {}
    errors: List[str] = []
    for file_obj in file_objs:
        name = file_name_from_path(upload_path(file_obj))
        try:
            documents[name] = read_json_content(file_obj)
        except DocumentLoadError as e:
            errors.append(str(e))

    names = list(documents)
    status = f"Loaded {len(names)} file(s)."
    if errors:
        status += " Errors: " + " | ".join(errors)

    paths: List[str] = []
    for document in documents.values():
        for path in list_available_paths(document, settings.available_paths_max_depth):
            if path not in paths:
                paths.append(path)

    return documents, status, gr.update(choices=names, value=names), paths


def rules_from_text(rules_text: Optional[str]) -> List[ExtractionRule]:
    """Rules typed into the editor; an empty editor means no rules."""
    if not rules_text or not rules_text.strip():
        return []
    return parse_rules_json(rules_text)


def load_rules_handler(rules_file: Optional[str] = None):
    store = RuleStore.load(rules_file)
    return store.export_json(), f"Loaded {len(store.get_rules())} rule(s) from {store.path}."


def save_rules_handler(rules_text: str, rules_file: Optional[str] = None):
    try:
        store = RuleStore(rules_from_text(rules_text), path=rules_file)
    except RuleImportError as e:
        return str(e)
    store.save()
    status = f"Saved {len(store.get_rules())} rule(s) to {store.path}."
    notes = path_style_notes(store.get_rules())
    if notes:
        status += " Path notes: " + " | ".join(notes)
    return status


def suggest_rules_handler(documents: Optional[Dict[str, Any]]):
    if not documents:
        return gr.update(), "Upload a JSON file first."

    store = RuleStore()
    for document in documents.values():
        for rule in suggest_rules(document):
            if store.get_rule(rule.name) is None:
                store.add_rule(rule)

    if not store.get_rules():
        return gr.update(), "No timeline-shaped arrays found."
    return store.export_json(), f"Suggested {len(store.get_rules())} rule(s)."


def display_rules(rules: List[ExtractionRule], entities: List[TimelineEntity]) -> List[ExtractionRule]:
    """Rules used to filter the view.

    Without enabled rules, entities come from auto-detection, so every
    detected array is shown.
    """
    if any(rule.enabled for rule in rules):
        return rules
    names: List[str] = []
    for entity in entities:
        if entity.source_array not in names:
            names.append(entity.source_array)
    return [ExtractionRule(name, name, '', '', '#1f77b4') for name in names]


def extract_handler(documents: Optional[Dict[str, Any]], rules_text: str):
    """Extract entities from every loaded document."""
    empty = gr.update(choices=[], value=[])
    if not documents:
        return [], "Upload a JSON file first.", empty, gr.update(choices=list(ENTITY_COLUMNS))

    try:
        rules = rules_from_text(rules_text)
    except RuleImportError as e:
        return [], str(e), empty, gr.update(choices=list(ENTITY_COLUMNS))

    groups = []
    warnings: List[str] = []
    for name, document in documents.items():
        result = extract_from_document(name, document, rules)
        groups.append(result.entities)
        warnings.extend(str(w) for w in result.warnings)

    entities = merge_entity_groups(groups)
    arrays = sorted({e.source_array for e in entities})

    columns = list(ENTITY_COLUMNS)
    for key in sorted({k for e in entities for k in extract_all_keys(e.original_data)}):
        if key not in columns:
            columns.append(key)

    status = f"Extracted {len(entities)} entities from {len(documents)} file(s)."
    if warnings:
        status += f" {len(warnings)} warning(s):\n" + "\n".join(warnings)
    return entities, status, gr.update(choices=arrays, value=[]), gr.update(choices=columns)


def build_filter_state(array_types, column, column_value, range_start, range_end) -> FilterState:
    column_filters: Dict[str, Any] = {}
    if column and column_value not in (None, ''):
        column_filters[column] = column_value

    date_range = None
    if range_start or range_end:
        start = parse_date(range_start)
        end = parse_date(range_end)
        if (range_start and start is None) or (range_end and end is None):
            raise ValueError("Date range values must be valid dates (e.g. 2024-01-31).")
        date_range = DateRange(start or end, end or start)

    return FilterState(
        column_filters=column_filters,
        date_range=date_range,
        array_types=list(array_types or []),
    )


def refresh_view_handler(entities, rules_text, selected_files, array_types,
                         column, column_value, range_start, range_end):
    """Recompute the table for the current filters."""
    entities = entities or []
    try:
        rules = rules_from_text(rules_text)
        filter_state = build_filter_state(array_types, column, column_value, range_start, range_end)
    except ValueError as e:
        return None, str(e)

    data = transform(entities, display_rules(rules, entities), selected_files or [], filter_state)
    rows = generate_table_data(data.entities)
    if not rows:
        return None, "No entities match the current filters."

    headers = table_columns(rows)
    table = {'headers': headers, 'data': [[row.get(h) for h in headers] for row in rows]}
    return table, f"Showing {len(rows)} of {len(entities)} entities."


def export_entities_handler(entities, file_name):
    if not entities:
        return None, "Nothing to export."

    file_name = os.path.basename((file_name or "").strip())
    if not file_name:
        file_name = "timeline_entities"
    if not file_name.lower().endswith('.json'):
        file_name += '.json'

    path = os.path.join(tempfile.gettempdir(), file_name)
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([e.to_dict() for e in entities], f, indent=2)
    except (OSError, TypeError) as e:
        logger.exception(f"Export to {path} failed")
        return None, f"Error during export: {str(e)}"

    return path, f"Export successful! Saved to {path}"
