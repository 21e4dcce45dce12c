from __future__ import annotations

from typing import Any, List, Set

from .paths import ROOT_PATH, join_path


def list_available_paths(data: Any, max_depth: int = 3) -> List[str]:
    """List the dotted paths present in a document, for rule-authoring hints.

    Arrays contribute their own path plus 'path[0]', and only their first
    element is walked to sample the item structure.
    """
    paths: List[str] = []
    seen: Set[str] = set()

    def add(path: str):
        if path and path not in seen:
            seen.add(path)
            paths.append(path)

    def traverse(current: Any, current_path: str, depth: int):
        if depth > max_depth or current is None:
            return

        if isinstance(current, dict):
            for k, v in current.items():
                new_path = join_path(current_path, k)
                add(new_path)
                traverse(v, new_path, depth + 1)
        elif isinstance(current, list) and current:
            if not current_path:
                add(ROOT_PATH)
                traverse(current[0], '', depth + 1)
                return
            add(current_path)
            sample_path = f"{current_path}[0]"
            add(sample_path)
            traverse(current[0], sample_path, depth + 1)

    traverse(data, '', 0)
    return paths


def find_list_paths(data: Any, parent_key: str = '') -> List[str]:
    """Find all paths in the JSON that point to a list."""
    paths: List[str] = []
    if isinstance(data, dict):
        for k, v in data.items():
            current_key = join_path(parent_key, k)
            if isinstance(v, list):
                paths.append(current_key)
            elif isinstance(v, dict):
                paths.extend(find_list_paths(v, current_key))
    elif isinstance(data, list):
        if not parent_key:
            paths.append(ROOT_PATH)
    return sorted(paths)


def extract_all_keys(data: Any, parent_key: str = '') -> Set[str]:
    """Recursively find all possible keys in a JSON structure (dict or list of dicts)."""
    keys: Set[str] = set()

    if isinstance(data, dict):
        for k, v in data.items():
            current_key = join_path(parent_key, k)
            if isinstance(v, (dict, list)):
                keys.update(extract_all_keys(v, current_key))
            else:
                keys.add(current_key)
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, (dict, list)):
                keys.update(extract_all_keys(item, parent_key))
            elif parent_key:
                keys.add(parent_key)
    elif parent_key:
        keys.add(parent_key)

    return keys
