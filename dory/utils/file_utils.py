"""File utilities for atomic writes, with sudo-backed variants for system files."""
import os
import stat
import tempfile
from typing import Optional

from dory.core.logger import logger
from dory.utils.process_utils import ProcessUtils

DEFAULT_FILE_MODE = 0o644


def _file_mode(file_path: str) -> int:
    try:
        return stat.S_IMODE(os.stat(file_path).st_mode)
    except OSError:
        return DEFAULT_FILE_MODE


def read_text(file_path: str) -> Optional[str]:
    """
    Read a text file.

    Returns:
        File contents, "" if the file does not exist, None if it exists
        but cannot be read
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {file_path}: {e}")
        return None


def atomic_write(file_path: str, content: str) -> bool:
    """
    Atomically write to a file to prevent corruption.
    Uses a temporary sibling file and a rename, so readers only ever see
    the old or the new contents. The target's permissions are kept.
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    temp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        mode = _file_mode(file_path)
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(file_path)}.", suffix=".tmp", dir=directory
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, file_path)
        return True
    except OSError as e:
        logger.error(f"Failed to write file {file_path}: {e}")
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass
        return False


def ensure_directory(directory: str) -> bool:
    try:
        os.makedirs(directory, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        return False


def remove_file(file_path: str) -> bool:
    try:
        os.remove(file_path)
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.error(f"Failed to remove {file_path}: {e}")
        return False


def privileged_write(file_path: str, content: str) -> bool:
    """
    Atomically write a root-owned file through sudo.

    The content is staged in a private temp file, installed next to the
    target and then renamed over it.
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    sibling = os.path.join(directory, f".{os.path.basename(file_path)}.dory-tmp")
    mode = format(_file_mode(file_path), "o")

    staged = None
    try:
        fd, staged = tempfile.mkstemp(prefix="dory-", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"Requesting sudo to write to {file_path}")
        for cmd in (
            ["mkdir", "-p", directory],
            ["install", "-m", mode, staged, sibling],
            ["mv", "-f", sibling, file_path],
        ):
            result = ProcessUtils.run_command(cmd, use_sudo=True)
            if not result.success:
                logger.error(f"Failed to write {file_path}: {result.stderr.strip()}")
                ProcessUtils.run_command(["rm", "-f", sibling], use_sudo=True)
                return False
        return True
    except OSError as e:
        logger.error(f"Failed to stage contents for {file_path}: {e}")
        return False
    finally:
        if staged and os.path.exists(staged):
            os.remove(staged)


def privileged_ensure_directory(directory: str) -> bool:
    logger.info(f"Requesting sudo to create {directory}")
    result = ProcessUtils.run_command(["mkdir", "-p", directory], use_sudo=True)
    if not result.success:
        logger.error(f"Failed to create directory {directory}: {result.stderr.strip()}")
    return result.success


def privileged_remove_file(file_path: str) -> bool:
    logger.info(f"Requesting sudo to delete {file_path}")
    result = ProcessUtils.run_command(["rm", "-f", file_path], use_sudo=True)
    if not result.success:
        logger.error(f"Failed to remove {file_path}: {result.stderr.strip()}")
    return result.success
