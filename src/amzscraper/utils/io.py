"""
File helpers for the scrape store and CSV exports.
"""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def read_json_file(file_path: Union[str, Path]) -> Any:
    """
    Load a JSON document.

    Raises:
        FileNotFoundError: ``file_path`` does not exist
        ValueError: The file is unreadable or not valid JSON
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to read JSON {file_path}: {e}") from e


def write_json_file(data: Any, file_path: Union[str, Path], indent: int = 2) -> None:
    """Dump ``data`` as UTF-8 JSON, creating parent directories; failures raise ValueError."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, default=str, ensure_ascii=False)
    except (OSError, TypeError) as e:
        raise ValueError(f"Failed to write JSON {file_path}: {e}") from e
    logger.debug(f"Saved {file_path}")


def safe_write_text_with_backup(text: str, file_path: Union[str, Path]) -> bool:
    """
    Write ``text`` to ``file_path`` without losing the previous version on failure.

    An existing file is copied to ``<name>.bak`` first and restored if the
    write fails. Newlines are written exactly as given.

    Returns:
        True if the write succeeded
    """
    file_path = Path(file_path)
    backup_path = file_path.with_suffix(f"{file_path.suffix}.bak")
    file_path.parent.mkdir(parents=True, exist_ok=True)

    backup_created = False
    if file_path.exists():
        try:
            shutil.copy2(file_path, backup_path)
            backup_created = True
        except OSError as exc:
            logger.warning(f"Failed to create backup for {file_path}: {exc}")

    try:
        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as exc:
        logger.error(f"Failed to write {file_path}: {exc}")
        if backup_created and backup_path.exists():
            try:
                shutil.move(backup_path, file_path)
                logger.info(f"Restored backup for {file_path}")
            except OSError as restore_error:
                logger.error(f"Failed to restore backup: {restore_error}")
        return False

    if backup_created and backup_path.exists():
        backup_path.unlink()
    logger.debug(f"Wrote {file_path} ({len(text)} chars)")
    return True


def make_filename_safe(text: str, max_length: int = 200) -> str:
    """Export-prefix friendly filename part: invalid characters and spaces become ``_``."""
    safe = _INVALID_FILENAME_CHARS.sub("_", text or "")
    safe = "_".join(safe.split()).strip("._")
    return safe[:max_length].rstrip("._") or "unnamed"


def ensure_output_directory(path: Union[str, Path]) -> Path:
    """Create ``path`` (and parents) if needed and return it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
