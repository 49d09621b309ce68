"""
File Storage & Path Safety

Provides the on-disk layout shared by render jobs and the stale file sweep:
- temp/<job_id>.tsx          ephemeral job source
- outputs/<job_id>[_name].mp4 rendered video (swept after the retention period)

Isolation between concurrent jobs comes from the job id embedded in every
filename, never from locking.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

SOURCE_EXTENSION = ".tsx"
OUTPUT_EXTENSION = ".mp4"


def get_storage_root(settings: Optional[Settings] = None) -> Path:
    """
    Get the storage root path from configuration.

    Raises:
        ValueError: If storage path is not configured
    """
    settings = settings or get_settings()
    if not settings.storage_path:
        raise ValueError("STORAGE_PATH environment variable not set")
    return settings.storage_root


def ensure_directories(settings: Optional[Settings] = None) -> dict[str, Path]:
    """
    Create the temp and output storage areas if missing.

    Returns:
        dict mapping area name ("temp", "outputs") to its path
    """
    settings = settings or get_settings()
    directories = {
        "temp": settings.temp_dir,
        "outputs": settings.output_dir,
    }
    for dir_path in directories.values():
        dir_path.mkdir(parents=True, exist_ok=True)
    return directories


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and other security issues.

    - Strips directory components (basename only)
    - Removes null bytes
    - Removes characters that are problematic on various filesystems
    - Limits filename length to 100 characters (excluding extension)

    Example:
        >>> sanitize_filename("../../../etc/passwd")
        'passwd'
        >>> sanitize_filename("my<file>name.mp4")
        'myfilename.mp4'
    """
    # Treat both separators as directory components regardless of host OS
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = filename.replace("\x00", "")
    filename = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "", filename)

    name, ext = os.path.splitext(filename)
    name = name.strip(". ")[:100]

    if not name:
        name = uuid4().hex[:8]

    return f"{name}{ext}"


def output_filename_for(job_id: str, requested: Optional[str] = None) -> str:
    """
    Name presented to the client in Content-Disposition.

    Falls back to "<job_id>.mp4" and forces the .mp4 extension.
    """
    if not requested or not requested.strip():
        return f"{job_id}{OUTPUT_EXTENSION}"

    safe = sanitize_filename(requested.strip())
    if not safe.lower().endswith(OUTPUT_EXTENSION):
        safe = f"{safe}{OUTPUT_EXTENSION}"
    return safe


def validate_job_id(job_id: str) -> bool:
    """Return True if job_id is a valid UUID string."""
    try:
        UUID(job_id)
        return True
    except (ValueError, TypeError):
        return False


def job_source_path(job_id: str, settings: Optional[Settings] = None) -> Path:
    """Path of the job-scoped copy of the submitted source text."""
    if not validate_job_id(job_id):
        raise ValueError("Invalid job ID: must be a valid UUID")
    settings = settings or get_settings()
    return settings.temp_dir / f"{job_id}{SOURCE_EXTENSION}"


def job_output_path(
    job_id: str,
    output_filename: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Path:
    """
    Path the renderer writes the job's video to.

    A client supplied name is prefixed with the job id so two jobs asking for
    the same name never share a file.
    """
    if not validate_job_id(job_id):
        raise ValueError("Invalid job ID: must be a valid UUID")
    settings = settings or get_settings()

    default_name = f"{job_id}{OUTPUT_EXTENSION}"
    if not output_filename or output_filename == default_name:
        name = default_name
    else:
        name = f"{job_id}_{sanitize_filename(output_filename)}"

    path = (settings.output_dir / name).resolve()
    if settings.output_dir.resolve() not in path.parents:
        raise ValueError("Path traversal detected")
    return path


def remove_file_quietly(path: Optional[Path], purpose: str = "file") -> bool:
    """
    Best-effort unlink.

    Missing files are not an error. Any other failure is logged and swallowed;
    callers on cleanup paths must never be interrupted by it.

    Returns:
        True if the file was removed
    """
    if path is None:
        return False
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Cleanup failed for {purpose} {path}: {e}")
        return False
