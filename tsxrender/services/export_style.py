"""
Export Style Detector.

Decides how the generated Root.tsx should import the user's component:
- a default export anywhere in the file wins
- otherwise the first named `export const|function <Capitalized>` that is not
  the config object
- otherwise a named import of the file's base name
"""

import re
from pathlib import Path
from typing import Union

from ..schemas.render import ExportStyle
from .config_extractor import CONFIG_EXPORT_NAME

DEFAULT_EXPORT_PATTERN = re.compile(r"export\s+default")
NAMED_COMPONENT_EXPORT_PATTERN = re.compile(r"export\s+(?:const|function)\s+([A-Z][a-zA-Z0-9]*)")


def detect_export_style(source_text: str, filename: str) -> ExportStyle:
    """
    Determine how the component in source_text is exported.

    Args:
        source_text: Full TSX source
        filename: Base name of the source file (without .tsx)

    Returns:
        ExportStyle(kind="default") or ExportStyle(kind="named", name=...)
    """
    if DEFAULT_EXPORT_PATTERN.search(source_text):
        return ExportStyle(kind="default", name=None)

    for match in NAMED_COMPONENT_EXPORT_PATTERN.finditer(source_text):
        name = match.group(1)
        if name != CONFIG_EXPORT_NAME:
            return ExportStyle(kind="named", name=name)

    return ExportStyle(kind="named", name=filename)


def detect_export_style_from_file(file_path: Union[str, Path]) -> ExportStyle:
    path = Path(file_path)
    return detect_export_style(path.read_text(encoding="utf-8"), path.stem)
