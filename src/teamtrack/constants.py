"""Define shared constants for the aggregation engine and its CLI."""

from __future__ import annotations

STATE_DIR_NAME = ".teamtrack"
CONFIG_FILE = "config.yaml"

# Implicit bucket for tasks without an epic reference.
NO_EPIC = "No Epic"

# Paste segmentation thresholds.
DEFAULT_PASTE_MIN_TEXT_LENGTH = 10
DEFAULT_PASTE_MIN_FRAGMENT_LENGTH = 4

DEFAULT_PAGE_SIZE = 20
DEFAULT_LOG_LEVEL = "INFO"
