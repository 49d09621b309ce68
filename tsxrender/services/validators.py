"""
Input validation for render jobs.

validate_source_text guards the HTTP path (presence and size, checked before
anything touches the filesystem). validate_source_file and
validate_output_path guard the command-line path, where the source is a file
on disk and the output location is chosen by the user.
"""

import os
import re
from pathlib import Path
from typing import Any, Union

from ..core.exceptions import ValidationError
from ..core.storage import OUTPUT_EXTENSION, SOURCE_EXTENSION
from .config_extractor import CONFIG_EXPORT_NAME

COMPONENT_EXPORT_PATTERN = re.compile(r"export\s+(const|function)\s+[A-Z]")


def validate_source_text(source_text: Any, max_size: int) -> str:
    """
    Validate submitted TSX source.

    Raises:
        ValidationError: If the source is missing, not a string or too large
    """
    if not source_text or not isinstance(source_text, str):
        raise ValidationError(
            'Request body must include a "tsx" field with TSX code as a string',
            details="Missing or invalid tsx field",
        )

    if len(source_text) > max_size:
        raise ValidationError(
            f"TSX code must be less than {max_size // 1024}KB",
            details="TSX code too large",
        )

    return source_text


def validate_source_file(file_path: Union[str, Path]) -> Path:
    """
    Validate that a TSX file exists, is readable and looks renderable.

    Raises:
        ValidationError: On the first failed check
    """
    path = Path(file_path)

    if not path.is_file():
        raise ValidationError(f"File not found: {path}")

    if path.suffix.lower() != SOURCE_EXTENSION:
        raise ValidationError(f"Invalid file type: {path.suffix}. Expected {SOURCE_EXTENSION} file.")

    if not os.access(path, os.R_OK):
        raise ValidationError(f"Cannot read file: {path}")

    content = path.read_text(encoding="utf-8")
    if CONFIG_EXPORT_NAME not in content:
        raise ValidationError(
            f"File does not contain a {CONFIG_EXPORT_NAME} export.\n"
            f"Your TSX file must export a {CONFIG_EXPORT_NAME} object."
        )

    if "export default" not in content and not COMPONENT_EXPORT_PATTERN.search(content):
        raise ValidationError(
            "File does not export a React component.\n"
            "Your TSX file must have a default export or named component export."
        )

    return path


def validate_output_path(output_path: Union[str, Path]) -> Path:
    """
    Validate a user chosen output location.

    Raises:
        ValidationError: If the directory is missing or the extension is not .mp4
    """
    path = Path(output_path)

    if not path.parent.is_dir():
        raise ValidationError(f"Output directory does not exist: {path.parent}")

    if path.suffix.lower() != OUTPUT_EXTENSION:
        raise ValidationError(f"Invalid output extension: {path.suffix}. Expected {OUTPUT_EXTENSION}")

    return path
