"""Records shared by extraction, transformation and the rule store.

JSON forms use the camelCase keys of the rule-set file format.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from .dates import parse_date, to_iso_string


@dataclass
class ExtractionRule:
    name: str
    array_path: str
    start_date_path: str
    end_date_path: str
    color: str
    enabled: bool = True
    y_axis_path: Optional[str] = None
    id_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.name,
            'arrayPath': self.array_path,
            'startDatePath': self.start_date_path,
            'endDatePath': self.end_date_path,
        }
        if self.y_axis_path is not None:
            data['yAxisPath'] = self.y_axis_path
        if self.id_path is not None:
            data['idPath'] = self.id_path
        data['color'] = self.color
        data['enabled'] = self.enabled
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractionRule':
        """Build a rule from its JSON form. Call validate_rule first on untrusted input."""
        return cls(
            name=data['name'],
            array_path=data['arrayPath'],
            start_date_path=data['startDatePath'],
            end_date_path=data['endDatePath'],
            color=data['color'],
            enabled=data.get('enabled', True),
            y_axis_path=data.get('yAxisPath') or None,
            id_path=data.get('idPath') or None,
        )

    def with_changes(self, **changes) -> 'ExtractionRule':
        return replace(self, **changes)


@dataclass(frozen=True)
class TimelineEntity:
    id: str
    start_date: datetime
    end_date: datetime
    source_array: str
    source_file: str
    original_data: Any = field(default=None, compare=False)
    y_value: Any = None

    @property
    def dedup_key(self):
        return (self.source_file, self.source_array, self.id)

    @property
    def duration_ms(self) -> int:
        return int((self.end_date - self.start_date).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'startDate': to_iso_string(self.start_date),
            'endDate': to_iso_string(self.end_date),
            'sourceArray': self.source_array,
            'sourceFile': self.source_file,
            'originalData': self.original_data,
        }
        if self.y_value is not None:
            data['yValue'] = self.y_value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimelineEntity':
        start = parse_date(data['startDate'])
        end = parse_date(data.get('endDate')) or start
        if start is None:
            raise ValueError(f"Entity {data.get('id')!r} has no valid startDate")
        return cls(
            id=str(data['id']),
            start_date=start,
            end_date=end,
            source_array=data['sourceArray'],
            source_file=data['sourceFile'],
            original_data=data.get('originalData'),
            y_value=data.get('yValue'),
        )


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start <= self.end and end >= self.start


@dataclass
class FilterState:
    column_filters: Dict[str, Any] = field(default_factory=dict)
    date_range: Optional[DateRange] = None
    array_types: List[str] = field(default_factory=list)


@dataclass
class VisualizationData:
    entities: List[TimelineEntity]
    rules: List[ExtractionRule]
    selected_files: List[str]
    filter_state: FilterState


@dataclass(frozen=True)
class ExtractionWarning:
    kind: str  # 'item', 'rule' or 'file'
    message: str
    source_file: str
    source_array: Optional[str] = None
    index: Optional[int] = None

    def __str__(self) -> str:
        where = self.source_file
        if self.source_array:
            where += f":{self.source_array}"
        if self.index is not None:
            where += f"[{self.index}]"
        return f"{where}: {self.message}"


@dataclass
class ExtractionResult:
    entities: List[TimelineEntity] = field(default_factory=list)
    warnings: List[ExtractionWarning] = field(default_factory=list)

    def warn(self, kind: str, message: str, source_file: str,
             source_array: Optional[str] = None, index: Optional[int] = None) -> None:
        self.warnings.append(ExtractionWarning(kind, message, source_file, source_array, index))

    def extend(self, other: 'ExtractionResult') -> None:
        self.entities.extend(other.entities)
        self.warnings.extend(other.warnings)
