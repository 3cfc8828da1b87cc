"""
Atomic file writing utilities.

Model weights are replaced atomically through a same-directory temporary
file. Dataset rows are appended with a single ``write`` on an ``O_APPEND``
descriptor so concurrent extraction runs never interleave partial rows.
"""

import errno
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict

import structlog

logger = structlog.get_logger(__name__)


def atomic_write_json(target_path: Path, data: Dict[str, Any]) -> None:
    """
    Atomically write JSON data to a file.

    Args:
        target_path: Target file path to write to
        data: Dictionary data to serialize as JSON

    Raises:
        OSError: If writing fails
        ValueError: If data cannot be serialized to JSON
    """
    target_path = Path(target_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        json_content = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize data to JSON", error=str(e))
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e

    temp_file_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=target_path.parent,
            prefix=f".{target_path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as temp_file:
            temp_file_path = Path(temp_file.name)
            temp_file.write(json_content)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        try:
            os.replace(str(temp_file_path), str(target_path))
        except OSError as rename_error:
            logger.warning("Atomic rename failed, falling back to shutil.move", error=str(rename_error))
            shutil.move(str(temp_file_path), str(target_path))
        logger.debug("Atomic write completed", target=str(target_path))
    finally:
        if temp_file_path and temp_file_path.exists():
            try:
                temp_file_path.unlink()
            except OSError:
                pass


def create_with_header(target_path: Path, header: str) -> bool:
    """
    Create ``target_path`` containing exactly ``header`` unless it already exists.

    The header is written to a temporary file first and hard-linked into
    place, so the file never becomes visible without its header and only
    one of several racing writers wins.

    Returns:
        True if this call created the file.
    """
    target_path = Path(target_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    if target_path.exists():
        return False

    fd, temp_name = tempfile.mkstemp(dir=target_path.parent, prefix=f".{target_path.name}.", suffix=".tmp")
    try:
        os.write(fd, header.encode("utf-8"))
        os.fsync(fd)
        os.close(fd)
        fd = -1
        try:
            os.link(temp_name, target_path)
            return True
        except FileExistsError:
            return False
        except OSError as e:
            if e.errno not in (errno.EPERM, errno.ENOTSUP, errno.EXDEV):
                raise
            # No hard links on this filesystem; exclusive create is the next best thing.
            try:
                out = os.open(target_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
            except FileExistsError:
                return False
            try:
                os.write(out, header.encode("utf-8"))
            finally:
                os.close(out)
            return True
    finally:
        if fd >= 0:
            os.close(fd)
        try:
            os.unlink(temp_name)
        except OSError:
            pass


def append_record(target_path: Path, record: str) -> None:
    """Append one complete record with a single write call."""
    fd = os.open(target_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
    try:
        os.write(fd, record.encode("utf-8"))
    finally:
        os.close(fd)
