"""Heuristic field detection for timeline-shaped objects.

The keyword lists are ordered; every lookup is a first-match-wins scan.
"""
from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional

from .dates import looks_like_date, parse_date

START_DATE_KEYWORDS = [
    'startDate', 'start', 'startTime', 'startDateTime', 'begin', 'beginDate',
    'from', 'fromDate', 'createdAt', 'created', 'deployedAt', 'targetDate',
]

END_DATE_KEYWORDS = [
    'endDate', 'end', 'endTime', 'endDateTime', 'finish', 'finishDate',
    'to', 'toDate', 'completedAt', 'completed', 'actualDate', 'dueDate',
]

ID_FIELD_PRIORITY = [
    'id', 'ID', '_id', 'uuid', 'key', 'name', 'title', 'identifier',
    'taskId', 'eventId', 'projectId', 'phaseId', 'sprintId', 'milestoneId',
    'version', 'deploymentId',
]

Y_AXIS_FIELD_PRIORITY = [
    'priority', 'level', 'status', 'type', 'category', 'environment',
    'team', 'assignee', 'budget', 'cost', 'value', 'importance',
    'criticality', 'severity', 'velocity', 'capacity',
]


class DateFields(NamedTuple):
    start: Optional[str]
    end: Optional[str]


def _exact_keyword_match(item: Dict[str, Any], keywords: List[str]) -> Optional[str]:
    lowered = {k.lower(): k for k in reversed(list(item.keys())) if isinstance(k, str)}
    for keyword in keywords:
        key = lowered.get(keyword.lower())
        if key is not None and parse_date(item[key]) is not None:
            return key
    return None


def _substring_keyword_matches(item: Dict[str, Any], keywords: List[str]) -> List[str]:
    matches: List[str] = []
    for keyword in keywords:
        needle = keyword.lower()
        for key, value in item.items():
            if key in matches or not isinstance(key, str):
                continue
            if needle in key.lower() and looks_like_date(value):
                matches.append(key)
    return matches


def find_date_fields(item: Any) -> DateFields:
    """Guess the start and end date keys of an object.

    End falls back to start for point-in-time items. Returns
    DateFields(None, None) when no start candidate exists.
    """
    if not isinstance(item, dict) or not item:
        return DateFields(None, None)

    end_candidates = _substring_keyword_matches(item, END_DATE_KEYWORDS)
    end = _exact_keyword_match(item, END_DATE_KEYWORDS) or next(iter(end_candidates), None)

    start = _exact_keyword_match(item, START_DATE_KEYWORDS)
    if start is None:
        start_candidates = [
            k for k in _substring_keyword_matches(item, START_DATE_KEYWORDS) if k != end
        ]
        start = next(iter(start_candidates), None)
    if start is None:
        for key, value in item.items():
            if key not in end_candidates and key != end and looks_like_date(value):
                start = key
                break
    if start is None and end is not None and set(end_candidates) <= {end} and looks_like_date(item[end]):
        # A lone date key is the start of a point event, whatever it is named.
        start = end

    if start is None:
        return DateFields(None, None)
    if end is None or end == start:
        end = start
    return DateFields(start, end)


def _first_present(item: Any, priority: List[str]) -> Optional[str]:
    if not isinstance(item, dict):
        return None
    for key in priority:
        if item.get(key) is not None:
            return key
    return None


def find_id_field(item: Any) -> Optional[str]:
    return _first_present(item, ID_FIELD_PRIORITY)


def find_y_axis_field(item: Any) -> Optional[str]:
    """Key of the first populated categorisation field.

    The value may be any scalar (a status string as often as a number).
    """
    return _first_present(item, Y_AXIS_FIELD_PRIORITY)


def find_numeric_fields(item: Any) -> List[str]:
    if not isinstance(item, dict):
        return []
    return [
        k for k, v in item.items()
        if isinstance(v, (int, float)) and not isinstance(v, bool)
    ]
