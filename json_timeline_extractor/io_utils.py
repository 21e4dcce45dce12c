from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List, Optional

from .config import settings


class DocumentLoadError(ValueError):
    """A JSON document could not be read, was too large, or did not parse."""


def file_name_from_path(file_path: str) -> str:
    if not file_path:
        return file_path
    return Path(str(file_path).replace('\\', '/')).name or str(file_path)


def _check_size(size: int, label: str, max_size: Optional[int]):
    limit = settings.max_file_size if max_size is None else max_size
    if limit and size > limit:
        raise DocumentLoadError(f"{label} is {size} bytes, over the {limit} byte limit.")


def read_json_content(file_obj, max_size: Optional[int] = None) -> Any:
    """Read JSON content from an uploaded file or file path."""
    if file_obj is None:
        raise DocumentLoadError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        label = getattr(file_obj, 'name', 'upload')
        _check_size(len(content), 'Upload', max_size)
        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8')
            except UnicodeDecodeError as e:
                raise DocumentLoadError(f"{label} is not valid UTF-8: {e}") from e
    else:
        path = file_obj.name if hasattr(file_obj, 'name') else file_obj
        label = str(path)
        try:
            _check_size(os.path.getsize(path), label, max_size)
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise DocumentLoadError(f"Cannot read {label}: {e}") from e
        except UnicodeDecodeError as e:
            raise DocumentLoadError(f"{label} is not valid UTF-8: {e}") from e

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise DocumentLoadError(
            f"Invalid JSON in {label} (line {e.lineno}, column {e.colno}): {e.msg}"
        ) from e


def upload_path(file_obj) -> str:
    """Best identifier for an uploaded file: its path, else its name."""
    if isinstance(file_obj, (str, os.PathLike)):
        return str(file_obj)
    return str(getattr(file_obj, 'name', file_obj))


def list_json_files(directory: str, extensions: Optional[List[str]] = None) -> List[str]:
    """Sorted paths of the supported documents directly inside `directory`."""
    extensions = [e.lower() for e in (extensions or settings.supported_extensions)]
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(
        str(p) for p in root.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )
