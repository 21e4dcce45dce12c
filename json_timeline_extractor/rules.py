"""The extraction rule set: storage, validation, JSON import/export, suggestions."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from .config import settings
from .detection import find_date_fields, find_id_field, find_numeric_fields, find_y_axis_field
from .log_utils import setup_logger
from .models import ExtractionRule
from .paths import ROOT_PATH, join_path, validate_path_syntax

logger = setup_logger(__name__)

HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')

REQUIRED_STRING_FIELDS = [
    ('name', 'Configuration name'),
    ('arrayPath', 'Array path'),
    ('startDatePath', 'Start date path'),
    ('endDatePath', 'End date path'),
]

OPTIONAL_STRING_FIELDS = [
    ('yAxisPath', 'Y-axis path'),
    ('idPath', 'ID path'),
]


class RuleImportError(ValueError):
    """A rule set could not be imported; the store was left unchanged."""


class RuleValidation(NamedTuple):
    is_valid: bool
    errors: List[str]


def default_rules() -> List[ExtractionRule]:
    """Rules for the common document shapes."""
    return [
        ExtractionRule('events', 'events', 'startDate', 'endDate', '#1f77b4',
                       y_axis_path='priority', id_path='id'),
        ExtractionRule('timeline', 'timeline', 'start', 'end', '#ff7f0e',
                       y_axis_path='level', id_path='name'),
        ExtractionRule('tasks', 'data.tasks', 'startTime', 'endTime', '#2ca02c',
                       y_axis_path='priority', id_path='taskId'),
        ExtractionRule('deployments', 'deployments', 'deployedAt', 'completedAt', '#d62728',
                       y_axis_path='environment', id_path='version'),
        ExtractionRule('projects', 'projects', 'startDate', 'endDate', '#9467bd',
                       y_axis_path='budget', id_path='projectName'),
    ]


def validate_rule(rule: Any) -> RuleValidation:
    """Check the structure of a rule (an ExtractionRule or its JSON form).

    Never raises; problems come back as human-readable strings.
    """
    if isinstance(rule, ExtractionRule):
        rule = rule.to_dict()
    if not isinstance(rule, dict):
        return RuleValidation(False, ['Configuration must be an object'])

    errors: List[str] = []
    for key, label in REQUIRED_STRING_FIELDS:
        value = rule.get(key)
        if not value or not isinstance(value, str):
            errors.append(f"{label} is required and must be a string")

    color = rule.get('color')
    if not color or not isinstance(color, str):
        errors.append('Color is required and must be a string')
    elif not HEX_COLOR.match(color):
        errors.append('Color must be a valid hex color (e.g., #1f77b4)')

    if not isinstance(rule.get('enabled'), bool):
        errors.append('Enabled flag must be a boolean')

    for key, label in OPTIONAL_STRING_FIELDS:
        value = rule.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{label} must be a string if provided")

    return RuleValidation(not errors, errors)


def path_style_notes(rules: Iterable[ExtractionRule]) -> List[str]:
    """Authoring hints for rule paths outside the plain dot-path style.

    Extraction still runs such rules; keys with spaces or accents resolve fine.
    """
    notes: List[str] = []
    for rule in rules:
        for label, path in (('array path', rule.array_path), ('start date path', rule.start_date_path),
                            ('end date path', rule.end_date_path)):
            is_valid, errors = validate_path_syntax(path)
            if not is_valid:
                notes.append(f"{rule.name}: {label} {path!r}: {errors[0]}")
    return notes


def _dedupe_last_wins(rules: Iterable[ExtractionRule]) -> List[ExtractionRule]:
    by_name: Dict[str, ExtractionRule] = {}
    for rule in rules:
        # dict keeps the first insertion position; assignment replaces the value
        by_name[rule.name] = rule
    return list(by_name.values())


def parse_rules_json(text: str) -> List[ExtractionRule]:
    """Parse a rule-set export (a list, or {"configurations": [...]}).

    Invalid entries are dropped with a warning, duplicate names resolve
    last-wins at the position of their first occurrence. Raises
    RuleImportError if the text is not JSON or holds no valid rule.
    """
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise RuleImportError(f"Failed to import configurations: invalid JSON ({e})") from e

    if isinstance(data, dict):
        data = data.get('configurations')
    if not isinstance(data, list):
        raise RuleImportError('Failed to import configurations: expected a list of configurations')

    valid: List[ExtractionRule] = []
    for index, entry in enumerate(data):
        validation = validate_rule(entry)
        if validation.is_valid:
            valid.append(ExtractionRule.from_dict(entry))
        else:
            logger.warning(f"Ignoring configuration {index}: {'; '.join(validation.errors)}")

    if not valid:
        raise RuleImportError('Failed to import configurations: no valid configurations found in import data')

    return _dedupe_last_wins(valid)


class RuleStore:
    """Ordered set of extraction rules keyed by name."""

    def __init__(self, rules: Optional[Iterable[ExtractionRule]] = None, path: Optional[str] = None):
        self.path = path
        self._rules: List[ExtractionRule] = _dedupe_last_wins(rules or [])

    def get_rules(self) -> List[ExtractionRule]:
        return list(self._rules)

    def get_rule(self, name: str) -> Optional[ExtractionRule]:
        return next((r for r in self._rules if r.name == name), None)

    def enabled_rules(self) -> List[ExtractionRule]:
        return [r for r in self._rules if r.enabled]

    def set_rules(self, rules: Iterable[ExtractionRule]):
        self._rules = _dedupe_last_wins(rules)

    def add_rule(self, rule: ExtractionRule):
        """Add a rule; a rule with the same name is replaced in place."""
        for index, existing in enumerate(self._rules):
            if existing.name == rule.name:
                self._rules[index] = rule
                return
        self._rules.append(rule)

    def remove_rule(self, name: str) -> bool:
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.name != name]
        return len(self._rules) != before

    def update_rule(self, name: str, **changes) -> Optional[ExtractionRule]:
        for index, existing in enumerate(self._rules):
            if existing.name == name:
                updated = existing.with_changes(**changes)
                self._rules[index] = updated
                return updated
        return None

    def reset_to_defaults(self):
        self._rules = default_rules()

    def export_json(self) -> str:
        return json.dumps([r.to_dict() for r in self._rules], indent=2)

    def import_json(self, text: str) -> List[ExtractionRule]:
        """Replace the whole rule set with an import; all-or-nothing."""
        imported = parse_rules_json(text)
        self._rules = imported
        logger.info(f"Imported {len(imported)} configurations")
        return self.get_rules()

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'RuleStore':
        """Load the workspace rule file, falling back to the default rules."""
        path = path or settings.rules_file
        store = cls(path=path)
        config_file = Path(path)
        if not config_file.is_file():
            store.reset_to_defaults()
            return store

        try:
            store.set_rules(parse_rules_json(config_file.read_text(encoding='utf-8')))
        except (OSError, RuleImportError) as e:
            logger.warning(f"Could not load rules from {path}: {e}; using defaults")
            store.reset_to_defaults()
        return store

    def save(self, path: Optional[str] = None):
        path = path or self.path or settings.rules_file
        payload = {'configurations': [r.to_dict() for r in self._rules]}
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
        self.path = path


def _analyze_array_structure(name: str, array_path: str, sample: Any, color: str) -> Optional[ExtractionRule]:
    if not isinstance(sample, dict) or not sample:
        return None

    date_fields = find_date_fields(sample)
    if date_fields.start is None:
        return None

    y_field = find_y_axis_field(sample) or next(iter(find_numeric_fields(sample)), None)

    return ExtractionRule(
        name=name,
        array_path=array_path,
        start_date_path=date_fields.start,
        end_date_path=date_fields.end,
        color=color,
        enabled=True,
        y_axis_path=y_field,
        id_path=find_id_field(sample),
    )


def suggest_rules(document: Any, palette: Optional[List[str]] = None) -> List[ExtractionRule]:
    """Propose a rule for every array whose first item looks timeline-shaped."""
    palette = palette or settings.color_palette
    suggestions: List[ExtractionRule] = []
    names = set()

    def propose(key: str, path: str, values: list):
        name = key if key not in names else path
        rule = _analyze_array_structure(name, path, values[0], palette[len(suggestions) % len(palette)])
        if rule is not None:
            names.add(rule.name)
            suggestions.append(rule)

    def find_arrays(obj: Any, path: str = ''):
        if not isinstance(obj, dict):
            return
        for key, value in obj.items():
            current_path = join_path(path, key)
            if isinstance(value, list):
                if value:
                    propose(str(key), current_path, value)
            elif isinstance(value, dict):
                find_arrays(value, current_path)

    if isinstance(document, list):
        if document:
            propose('root', ROOT_PATH, document)
    else:
        find_arrays(document)
    return suggestions
