"""Entity extraction from JSON documents.

Either the enabled extraction rules drive extraction, or, when none is
enabled, every array of timeline-shaped objects in the document is detected
heuristically. Failures are isolated per item and per rule and reported as
warnings on the returned ExtractionResult; nothing here raises for bad input.
"""
from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional

from .accessors import NOT_FOUND, resolve_path
from .dates import parse_date
from .detection import DateFields, find_date_fields, find_id_field, find_y_axis_field
from .io_utils import DocumentLoadError, file_name_from_path, read_json_content
from .log_utils import setup_logger
from .models import ExtractionResult, ExtractionRule, TimelineEntity
from .paths import ROOT_PATH, join_path, path_structure_errors

logger = setup_logger(__name__)


def stringify_value(value: Any) -> str:
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def build_entity(
    item: Any,
    rule: ExtractionRule,
    source_file: str,
    index: int,
    result: ExtractionResult,
) -> Optional[TimelineEntity]:
    """Build one entity from an array element, or record why it was dropped."""
    start_value = resolve_path(item, rule.start_date_path)
    start_date = None if start_value is NOT_FOUND else parse_date(start_value)
    if start_date is None:
        reason = (
            f"no value at '{rule.start_date_path}'" if start_value is NOT_FOUND
            else f"unparseable start date {start_value!r}"
        )
        result.warn('item', f"Skipped item: {reason}", source_file, rule.name, index)
        logger.warning(f"Skipping item {index} in {rule.name} ({source_file}): {reason}")
        return None

    end_value = resolve_path(item, rule.end_date_path)
    end_date = None if end_value is NOT_FOUND else parse_date(end_value)
    if end_date is None:
        end_date = start_date

    y_value = None
    if rule.y_axis_path:
        y_value = resolve_path(item, rule.y_axis_path)
        if y_value is NOT_FOUND:
            y_value = None

    entity_id = f"{rule.name}-{index}"
    if rule.id_path:
        id_value = resolve_path(item, rule.id_path)
        if id_value is not NOT_FOUND and id_value:
            entity_id = stringify_value(id_value)

    return TimelineEntity(
        id=entity_id,
        start_date=start_date,
        end_date=end_date,
        source_array=rule.name,
        source_file=source_file,
        original_data=item,
        y_value=y_value,
    )


def extract_array_data(
    items: List[Any],
    rule: ExtractionRule,
    source_file: str,
    result: Optional[ExtractionResult] = None,
) -> List[TimelineEntity]:
    result = result if result is not None else ExtractionResult()
    entities: List[TimelineEntity] = []
    for index, item in enumerate(items):
        entity = build_entity(item, rule, source_file, index, result)
        if entity is not None:
            entities.append(entity)
    return entities


def _extract_with_rule(document: Any, rule: ExtractionRule, source_file: str,
                       result: ExtractionResult) -> List[TimelineEntity]:
    for label, path in (('array path', rule.array_path), ('start date path', rule.start_date_path)):
        errors = path_structure_errors(path)
        if errors:
            message = f"Invalid {label} {path!r}: {'; '.join(errors)}"
            result.warn('rule', message, source_file, rule.name)
            logger.warning(f"Rule {rule.name} skipped for {source_file}: {message}")
            return []

    items = resolve_path(document, rule.array_path)
    if not isinstance(items, list):
        logger.debug(f"Rule {rule.name}: no array at '{rule.array_path}' in {source_file}")
        return []

    return extract_array_data(items, rule, source_file, result)


def extract_from_document(document_id: str, document: Any,
                          rules: Iterable[ExtractionRule]) -> ExtractionResult:
    """Extract timeline entities from one parsed JSON document."""
    source_file = file_name_from_path(document_id)
    result = ExtractionResult()

    enabled = [rule for rule in (rules or []) if rule.enabled]
    if not enabled:
        result.entities.extend(auto_detect(document, document_id))
        logger.info(f"Auto-detected {len(result.entities)} entities in {source_file}")
        return result

    for rule in enabled:
        try:
            result.entities.extend(_extract_with_rule(document, rule, source_file, result))
        except Exception as e:
            result.warn('rule', f"Extraction failed: {e}", source_file, rule.name)
            logger.exception(f"Failed to extract data for rule {rule.name} in {source_file}")

    logger.info(
        f"Extracted {len(result.entities)} entities from {source_file} "
        f"with {len(enabled)} rules ({len(result.warnings)} warnings)"
    )
    return result


def create_auto_detected_entity(
    item: dict,
    array_name: str,
    date_fields: DateFields,
    source_file: str,
    index: int,
) -> Optional[TimelineEntity]:
    start_date = parse_date(item.get(date_fields.start))
    end_date = parse_date(item.get(date_fields.end))
    if start_date is None:
        return None
    if end_date is None:
        end_date = start_date

    id_field = find_id_field(item)
    entity_id = stringify_value(item[id_field]) if id_field else f"{array_name}-{index}"

    y_field = find_y_axis_field(item)

    return TimelineEntity(
        id=entity_id,
        start_date=start_date,
        end_date=end_date,
        source_array=array_name,
        source_file=source_file,
        original_data=item,
        y_value=item[y_field] if y_field else None,
    )


def _extract_timeline_from_array(items: List[Any], array_name: str,
                                 source_file: str) -> List[TimelineEntity]:
    entities: List[TimelineEntity] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item:
            continue
        date_fields = find_date_fields(item)
        if date_fields.start is None:
            continue
        entity = create_auto_detected_entity(item, array_name, date_fields, source_file, index)
        if entity is not None:
            entities.append(entity)
    return entities


def _element_path(array_path: str, index: int) -> str:
    # Elements of a root array have no addressable prefix of their own.
    if array_path == ROOT_PATH:
        return ''
    return f"{array_path}[{index}]"


def _search_array(items: List[Any], array_path: str, source_file: str,
                  entities: List[TimelineEntity]):
    if not items:
        return
    entities.extend(_extract_timeline_from_array(items, array_path, source_file))
    for index, item in enumerate(items):
        if isinstance(item, dict):
            _search_for_timeline_arrays(item, _element_path(array_path, index), source_file, entities)


def _search_for_timeline_arrays(obj: Any, current_path: str, source_file: str,
                                entities: List[TimelineEntity]):
    if not isinstance(obj, dict):
        return

    for key, value in obj.items():
        full_path = join_path(current_path, key)
        if isinstance(value, list):
            _search_array(value, full_path, source_file, entities)
        elif isinstance(value, dict):
            _search_for_timeline_arrays(value, full_path, source_file, entities)


def auto_detect(document: Any, document_id: str) -> List[TimelineEntity]:
    """Find every array of timeline-shaped objects and turn its items into entities.

    Each array is tagged with the path where it was found, e.g.
    'projects[0].phases' for an array inside the first project; a document
    whose root is an array is tagged '(root)'.
    """
    source_file = file_name_from_path(document_id)
    entities: List[TimelineEntity] = []
    if isinstance(document, list):
        _search_array(document, ROOT_PATH, source_file, entities)
    else:
        _search_for_timeline_arrays(document, '', source_file, entities)
    return entities


def extract_from_files(paths: Iterable[str], rules: Iterable[ExtractionRule]) -> ExtractionResult:
    """Read and extract several documents; unreadable files become warnings."""
    rules = list(rules or [])
    combined = ExtractionResult()
    for path in paths:
        try:
            document = read_json_content(path)
        except DocumentLoadError as e:
            combined.warn('file', str(e), file_name_from_path(str(path)))
            logger.warning(f"Skipping {path}: {e}")
            continue
        combined.extend(extract_from_document(str(path), document, rules))
    return combined
