"""
File system utilities for atomic artifact writes.

Artifacts are written to a temporary file in the destination directory and
moved into place, so a reader never observes a half-written file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_text(file_path: Union[str, Path], content: str, encoding: str = "utf-8") -> None:
    """Atomically write text content to file."""
    file_path = Path(file_path)

    with tempfile.NamedTemporaryFile(
        mode='w',
        encoding=encoding,
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        delete=False,
        suffix='.tmp'
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except BaseException:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise

    # Atomic move to final location
    try:
        tmp_path.replace(file_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def atomic_write_json(file_path: Union[str, Path], data: Any, indent: int = 2) -> None:
    """Atomically write JSON data to file."""
    content = json.dumps(data, indent=indent, ensure_ascii=False)
    atomic_write_text(file_path, content + "\n")
