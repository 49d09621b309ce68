"""
Composition Config Extractor.

Reads the `compositionConfig` export out of TSX source text without a full
TypeScript parser. Two strategies are tried in sequence:

1. Structural: the captured object literal is cleaned (comments, trailing
   commas) and parsed as JSON5, which tolerates unquoted keys and single
   quoted strings. Nothing is ever executed.
2. Per-field regex: when the literal is not plain data (arrow functions,
   type assertions, truncated strings...), each known scalar field is pulled
   out with a targeted pattern. defaultProps is never recovered here.

Only a missing compositionConfig export is a hard failure; any other problem
degrades to defaults.
"""

import logging
import math
import re
from pathlib import Path
from typing import Any, Callable, Optional, Union

import json5

from ..core.exceptions import ConfigExtractionError
from ..schemas.render import CompositionConfig

logger = logging.getLogger(__name__)

CONFIG_EXPORT_NAME = "compositionConfig"

# Defaults applied to absent (or falsy) fields
DEFAULT_DURATION_IN_SECONDS = 5
DEFAULT_FPS = 30
DEFAULT_WIDTH = 1080
DEFAULT_HEIGHT = 1920

# `export const compositionConfig = { ... };` - non-greedy up to the first `};`
CONFIG_EXPORT_PATTERN = re.compile(
    r"export\s+const\s+" + CONFIG_EXPORT_NAME + r"\s*=\s*(\{[\s\S]*?\});"
)

LINE_COMMENT_PATTERN = re.compile(r"//.*$", re.MULTILINE)
BLOCK_COMMENT_PATTERN = re.compile(r"/\*[\s\S]*?\*/")
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")

FALLBACK_FIELDS = ("id", "durationInSeconds", "fps", "width", "height")


def extract_composition_config(source_text: str, filename: str) -> CompositionConfig:
    """
    Extract the composition config from TSX source text.

    Args:
        source_text: Full TSX source
        filename: Base name of the source file (without .tsx); used as the
                  default id and in error messages

    Returns:
        CompositionConfig with every field populated

    Raises:
        ConfigExtractionError: If no compositionConfig export is present
    """
    literal = find_config_literal(source_text)
    if literal is None:
        raise ConfigExtractionError(
            f"No {CONFIG_EXPORT_NAME} found in {filename}.tsx\n"
            f"Your file must export a {CONFIG_EXPORT_NAME} object.",
            details={"file": f"{filename}.tsx"},
        )

    try:
        raw = parse_config_literal(literal)
    except ValueError as e:
        logger.debug(f"Structural parse of {filename}.tsx config failed, using field patterns: {e}")
        return _fallback_config(literal, filename)

    return build_config(raw, filename)


def extract_composition_config_from_file(file_path: Union[str, Path]) -> CompositionConfig:
    """Read a .tsx file and extract its composition config."""
    path = Path(file_path)
    source_text = path.read_text(encoding="utf-8")
    return extract_composition_config(source_text, path.stem)


def find_config_literal(source_text: str) -> Optional[str]:
    """Return the `{ ... }` text assigned to compositionConfig, or None."""
    match = CONFIG_EXPORT_PATTERN.search(source_text or "")
    if not match:
        return None
    return match.group(1)


def clean_config_literal(literal: str) -> str:
    """Strip line comments, block comments and trailing commas."""
    cleaned = LINE_COMMENT_PATTERN.sub("", literal)
    cleaned = BLOCK_COMMENT_PATTERN.sub("", cleaned)
    cleaned = TRAILING_COMMA_PATTERN.sub(r"\1", cleaned)
    return cleaned


def parse_config_literal(literal: str) -> dict:
    """
    Parse a cleaned object literal as plain data.

    Raises:
        ValueError: If the literal is not a plain JSON5 object
    """
    try:
        value = json5.loads(clean_config_literal(literal))
    except ValueError:
        raise
    except Exception as e:
        # json5 reports some malformed input with non-ValueError exceptions
        raise ValueError(str(e)) from e

    if not isinstance(value, dict):
        raise ValueError(f"{CONFIG_EXPORT_NAME} is not an object literal")
    return value


def build_config(raw: dict, filename: str) -> CompositionConfig:
    """
    Backfill defaults into a structurally parsed config.

    Present values win over defaults, except falsy ones (0, "", null, false)
    which count as absent. Numeric values that are not positive numbers are
    replaced by their default as well.
    """
    default_props = raw.get("defaultProps")

    return CompositionConfig(
        id=_as_id(raw.get("id"), filename),
        duration_in_seconds=_as_positive(raw.get("durationInSeconds"), DEFAULT_DURATION_IN_SECONDS),
        fps=_as_positive(raw.get("fps"), DEFAULT_FPS),
        width=_as_positive(raw.get("width"), DEFAULT_WIDTH, integer=True),
        height=_as_positive(raw.get("height"), DEFAULT_HEIGHT, integer=True),
        default_props=default_props if isinstance(default_props, dict) and default_props else {},
    )


def extract_field_value(literal: str, key: str) -> Optional[str]:
    """
    Pull a single scalar out of a config literal.

    Tries `key: 'string'` / `key: "string"` first, then `key: 123` / `key: 1.5`.
    """
    patterns = [
        re.compile(rf"(?<![\w$]){re.escape(key)}\s*:\s*['\"]([^'\"]+)['\"]"),
        re.compile(rf"(?<![\w$]){re.escape(key)}\s*:\s*(\d+\.?\d*)"),
    ]
    for pattern in patterns:
        match = pattern.search(literal)
        if match:
            return match.group(1)
    return None


def _fallback_config(literal: str, filename: str) -> CompositionConfig:
    """Regex-only extraction for literals the structural parser rejects."""
    values = {key: extract_field_value(literal, key) for key in FALLBACK_FIELDS}

    return CompositionConfig(
        id=values["id"] or filename,
        duration_in_seconds=_parse_number(values["durationInSeconds"], float, DEFAULT_DURATION_IN_SECONDS),
        fps=_parse_number(values["fps"], _leading_int, DEFAULT_FPS),
        width=_parse_number(values["width"], _leading_int, DEFAULT_WIDTH),
        height=_parse_number(values["height"], _leading_int, DEFAULT_HEIGHT),
        default_props={},
    )


def _as_id(value: Any, filename: str) -> str:
    if not value or isinstance(value, (bool, dict, list)):
        return filename
    text = str(value)
    return text if text.strip() else filename


def _as_positive(value: Any, default: Union[int, float], integer: bool = False) -> Union[int, float]:
    # bool is an int subclass; `true` is not a dimension
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not _is_positive_finite(value):
        return default
    if integer:
        return int(value) or default
    return value


def _parse_number(
    text: Optional[str],
    parse: Callable[[str], Union[int, float]],
    default: Union[int, float],
) -> Union[int, float]:
    if text is None:
        return default
    try:
        value = parse(text)
    except ValueError:
        return default
    return value if _is_positive_finite(value) else default


def _is_positive_finite(value: Union[int, float]) -> bool:
    # "Infinity" and overlong digit runs parse to inf or to ints beyond float range
    try:
        return math.isfinite(float(value)) and value > 0
    except OverflowError:
        return False


def _leading_int(text: str) -> int:
    """Integer part of a numeric string ("29.97" -> 29)."""
    match = re.match(r"\d+", text.strip())
    if not match:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group(0))
