"""Load optional engine configuration from `.teamtrack/config.yaml`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .aggregation.paste import PasteSettings
from .constants import (
    CONFIG_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PASTE_MIN_FRAGMENT_LENGTH,
    DEFAULT_PASTE_MIN_TEXT_LENGTH,
    STATE_DIR_NAME,
)
from .io_utils import _load_data_with_error

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def load_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        project_dir: Directory holding `.teamtrack/`.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = project_dir.resolve() / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _positive_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        return default
    return raw


def get_paste_settings(config: dict[str, Any]) -> PasteSettings:
    """Extract paste segmentation thresholds, falling back to defaults on bad values."""
    return PasteSettings(
        min_text_length=_positive_int(
            _get_nested(config, "paste", "min_text_length"), DEFAULT_PASTE_MIN_TEXT_LENGTH
        ),
        min_fragment_length=_positive_int(
            _get_nested(config, "paste", "min_fragment_length"), DEFAULT_PASTE_MIN_FRAGMENT_LENGTH
        ),
    )


def get_kpi_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the kpi block.

    Returns:
        A mapping with a boolean `recompute_overdue` key.
    """
    raw = _get_nested(config, "kpi", "recompute_overdue")
    return {"recompute_overdue": raw is True}


def get_listing_config(config: dict[str, Any]) -> dict[str, Any]:
    raw = _get_nested(config, "listing", "page_size")
    return {"page_size": _positive_int(raw, DEFAULT_PAGE_SIZE)}


def get_log_level(config: dict[str, Any]) -> str:
    raw = config.get("log_level")
    if isinstance(raw, str) and raw.upper() in VALID_LOG_LEVELS:
        return raw.upper()
    return DEFAULT_LOG_LEVEL
