from __future__ import annotations

from typing import Any

from .paths import ROOT_PATH, parse_segment, split_path


class _NotFound:
    """Sentinel for a path that addresses nothing.

    Distinct from None, which is a present JSON null.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NOT_FOUND'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_NotFound, ())


NOT_FOUND = _NotFound()


def get_child(container: Any, key: str) -> Any:
    if isinstance(container, dict) and key in container:
        return container[key]
    return NOT_FOUND


def get_item(container: Any, index: int) -> Any:
    if isinstance(container, list) and 0 <= index < len(container):
        return container[index]
    return NOT_FOUND


def resolve_path(data: Any, path: str) -> Any:
    """Return the value addressed by `path` inside `data`, or NOT_FOUND.

    Supports dotted field access ('data.events') and a single literal index
    per segment ('timeline.items[0].date'). Never raises.
    """
    if data is None or not path or not isinstance(path, str):
        return NOT_FOUND

    if path == ROOT_PATH:
        return data

    if '.' not in path and '[' not in path and '\\' not in path:
        return get_child(data, path)

    segments = split_path(path)
    if not segments:
        return NOT_FOUND

    current = data
    for segment in segments:
        if current is None or current is NOT_FOUND:
            return NOT_FOUND

        parsed = parse_segment(segment)
        if parsed is None:
            return NOT_FOUND
        key, index = parsed

        current = get_child(current, key)
        if index is not None:
            if not isinstance(current, list):
                return NOT_FOUND
            current = get_item(current, index)

    return current


def validate_path(data: Any, path: str) -> bool:
    return resolve_path(data, path) is not NOT_FOUND
