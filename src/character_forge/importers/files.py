"""
Read character files for import and write templates or exports to disk.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..exceptions import CharacterFileError


_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def read_character_file(file_path: str | Path) -> tuple[str, str]:
    """
    Read a local character file.

    Args:
        file_path: Path to a .json, .yaml or .yml file

    Returns:
        (raw text, format) where format is "json" or "yaml"

    Raises:
        CharacterFileError: If the file is missing, unreadable or of an unknown type
    """
    path = Path(file_path)
    fmt = _FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise CharacterFileError(
            f"Unsupported character file type: '{path.suffix or path.name}'. "
            "Use a .json or .yaml file."
        )

    try:
        return path.read_text(encoding="utf-8"), fmt
    except FileNotFoundError:
        raise CharacterFileError(f"Character file not found: {file_path}") from None
    except UnicodeDecodeError:
        raise CharacterFileError(f"Character file is not UTF-8 text: {file_path}") from None
    except OSError as e:
        raise CharacterFileError(f"Failed to read character file: {e}") from None


def write_character_file(data: dict[str, Any] | str, filename: str, directory: str | Path = ".") -> Path:
    """
    Write a character or template as indented JSON.

    Args:
        data: A JSON-ready dict, or already serialized JSON text
        filename: Target file name; ".json" is appended when missing
        directory: Target directory, created if needed

    Returns:
        Path of the written file

    Raises:
        CharacterFileError: If the file cannot be written
    """
    name = Path(filename).name
    if not name:
        raise CharacterFileError("A file name is required")
    if not name.lower().endswith(".json"):
        name += ".json"

    text = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)
    target = Path(directory) / name
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    except OSError as e:
        raise CharacterFileError(f"Failed to write {target}: {e}") from None
    return target
