"""
File I/O for the CLI and API: read sources, write results.

The pipeline never touches the filesystem; the CLI and API come here instead.
Every OS failure is re-raised as a KeyValidatorError subclass carrying the
original message.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

from dotenv import set_key

from .exceptions import EmptyInputError, PersistenceError, SourceNotFoundError

logger = logging.getLogger(__name__)


def read_source(path: str | Path) -> str:
    """Read a UTF-8 source file.

    Raises:
        SourceNotFoundError: The file does not exist.
        EmptyInputError: The file is blank.
        PersistenceError: Any other read failure.
    """
    source = Path(path)
    if not source.is_file():
        raise SourceNotFoundError(f"File not found: {source}", {"path": str(source)})

    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(f"Failed to read {source}: {e}", {"path": str(source)}) from e

    if not text.strip():
        raise EmptyInputError(f"No data in {source}", {"path": str(source)})

    logger.info("Loaded %d characters from %s", len(text), source)
    return text


def backup_file(path: str | Path) -> Path:
    """Copy `path` to `<path>.bak.<epoch millis>` and return the copy's path."""
    source = Path(path)
    backup = source.with_name(f"{source.name}.bak.{int(time.time() * 1000)}")
    try:
        shutil.copy2(source, backup)
    except OSError as e:
        raise PersistenceError(f"Failed to back up {source}: {e}", {"path": str(source)}) from e
    logger.info("Backup created: %s", backup)
    return backup


def write_env_var(
    path: str | Path, var_name: str, value: str, backup: bool = True
) -> Path | None:
    """Set `var_name=value` in a dotenv file, replacing an existing line.

    The value is written unquoted. When the file already exists and
    `backup` is set, it is copied aside first.

    Returns:
        The backup path, or None when no backup was made.
    """
    target = Path(path)
    backup_path = backup_file(target) if backup and target.exists() else None

    try:
        target.touch(exist_ok=True)
        set_key(target, var_name, value, quote_mode="never")
    except OSError as e:
        raise PersistenceError(f"Failed to write {target}: {e}", {"path": str(target)}) from e

    logger.info("Wrote %s to %s", var_name, target)
    return backup_path


def write_output(path: str | Path, text: str) -> Path:
    """Write formatted output verbatim to `path`."""
    target = Path(path)
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(
            f"Failed to write output file: {e}", {"path": str(target)}
        ) from e
    logger.info("Wrote %d characters to %s", len(text), target)
    return target
