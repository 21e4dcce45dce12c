"""Core logic for JSON Timeline Extractor.

The Gradio UI lives in `app.py`. This package contains pure functions that:
- resolve dot-paths inside arbitrary JSON
- normalize heterogeneous date values
- extract timeline entities with rules or heuristic detection
- merge, filter and sort entities for display
"""
from .accessors import NOT_FOUND, resolve_path, validate_path
from .extraction import auto_detect, extract_from_document, extract_from_files
from .models import (
    DateRange,
    ExtractionResult,
    ExtractionRule,
    ExtractionWarning,
    FilterState,
    TimelineEntity,
    VisualizationData,
)
from .rules import RuleImportError, RuleStore, suggest_rules, validate_rule
from .schema_utils import list_available_paths
from .transform import merge_entity_groups, transform

__all__ = [
    'NOT_FOUND',
    'DateRange',
    'ExtractionResult',
    'ExtractionRule',
    'ExtractionWarning',
    'FilterState',
    'RuleImportError',
    'RuleStore',
    'TimelineEntity',
    'VisualizationData',
    'auto_detect',
    'extract_from_document',
    'extract_from_files',
    'list_available_paths',
    'merge_entity_groups',
    'resolve_path',
    'suggest_rules',
    'transform',
    'validate_path',
    'validate_rule',
]
