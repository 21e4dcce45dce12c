from __future__ import annotations

import re
from typing import List, Optional, Tuple

ROOT_PATH = '(root)'

_INDEXED_SEGMENT = re.compile(r'^([^\[\]]+)\[(\d+)\]$')
_ALLOWED_PATH_CHARS = re.compile(r'^[A-Za-z0-9_\-.\[\]\\]+$')


def escape_path_segment(segment: str) -> str:
    """Escape a single key segment for dot-path representation.

    - Dots are escaped as '\\.' so keys like 'gpt-3.5-turbo' remain one segment.
    - Backslashes are escaped as '\\\\' to preserve round-tripping.
    """
    if not isinstance(segment, str):
        segment = str(segment)
    return segment.replace('\\', '\\\\').replace('.', '\\.')


def unescape_path_segment(segment: str) -> str:
    if segment is None:
        return ''
    out: List[str] = []
    i = 0
    while i < len(segment):
        ch = segment[i]
        if ch == '\\' and i + 1 < len(segment):
            out.append(segment[i + 1])
            i += 2
        else:
            out.append(ch)
            i += 1
    return ''.join(out)


def split_path(path: str) -> List[str]:
    """Split a path on unescaped '.' outside of '[...]' and unescape each segment.

    'timeline.items[0].date' -> ['timeline', 'items[0]', 'date']
    """
    if path is None:
        return []
    if not isinstance(path, str):
        path = str(path)

    parts: List[str] = []
    buf: List[str] = []
    escaping = False
    in_brackets = False

    for ch in path:
        if escaping:
            # Keep the escape pair so unescape_path_segment can process it.
            buf.append('\\')
            buf.append(ch)
            escaping = False
            continue

        if ch == '\\':
            escaping = True
            continue
        if ch == '[':
            in_brackets = True
        elif ch == ']':
            in_brackets = False
        elif ch == '.' and not in_brackets:
            parts.append(unescape_path_segment(''.join(buf)))
            buf = []
            continue
        buf.append(ch)

    if escaping:
        # Trailing backslash; treat as literal.
        buf.append('\\')

    parts.append(unescape_path_segment(''.join(buf)))
    return [p for p in parts if p != '']


def parse_segment(segment: str) -> Optional[Tuple[str, Optional[int]]]:
    """Split a segment into (key, index).

    Returns (key, None) for a plain key, (key, k) for 'key[k]', and None when
    the bracket syntax is malformed.
    """
    if '[' not in segment and ']' not in segment:
        return segment, None
    match = _INDEXED_SEGMENT.match(segment)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def join_path(parent: str, key: str) -> str:
    escaped = escape_path_segment(key)
    return f"{parent}.{escaped}" if parent else escaped


def path_structure_errors(path) -> List[str]:
    """Problems that make a path impossible to resolve.

    Unlike validate_path_syntax this accepts any key text (spaces, accents,
    symbols); only empty paths and malformed index segments are reported.
    """
    if not path or not isinstance(path, str):
        return ['Path must be a non-empty string']
    if path == ROOT_PATH:
        return []
    segments = split_path(path)
    if not segments:
        return ['Path must contain at least one key']
    return [
        f"Invalid array access '{segment}'; use name[index] with a non-negative integer"
        for segment in segments
        if parse_segment(segment) is None
    ]


def validate_path_syntax(path) -> Tuple[bool, List[str]]:
    """Lint a path string for rule authoring. Returns (is_valid, errors)."""
    errors: List[str] = []

    if not path or not isinstance(path, str):
        return False, ['Path must be a non-empty string']

    if path == ROOT_PATH:
        return True, []

    if not _ALLOWED_PATH_CHARS.match(path):
        errors.append(
            'Path contains invalid characters. Use only letters, numbers, '
            'underscores, hyphens, dots, and square brackets'
        )

    if path.count('[') != path.count(']'):
        errors.append('Unmatched square brackets in path')
    elif '[' in path:
        for segment in split_path(path):
            if ('[' in segment or ']' in segment) and parse_segment(segment) is None:
                errors.append(f"Invalid array access '{segment}'; use name[index] with a non-negative integer")

    if '..' in path:
        errors.append('Path cannot contain consecutive dots')

    if path.startswith('.') or path.endswith('.'):
        errors.append('Path cannot start or end with a dot')

    return not errors, errors
