"""Heuristic segmentation of pasted text into task candidates.

The classifier never applies a split. It returns :class:`SinglePaste` or
:class:`PasteCandidates`, and the caller presents the choice to the user
(see :mod:`.drafts`). False positives and negatives are expected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..constants import DEFAULT_PASTE_MIN_FRAGMENT_LENGTH, DEFAULT_PASTE_MIN_TEXT_LENGTH

_SEPARATORS_RE = re.compile(r"[\n\r.;!?]")
_NUMBERED_RE = re.compile(r"(?:^|\s)\d+[.)](?=\s|$)", re.M)
_BULLET_RE = re.compile(r"^\s*[-*•]\s", re.M)
_LEADING_MARKER_RE = re.compile(r"^(?:[-*•]|\d+\))\s*")


class PasteField(str, Enum):
    TITLE = "title"
    DESCRIPTION = "description"


@dataclass(frozen=True)
class PasteSettings:
    min_text_length: int = DEFAULT_PASTE_MIN_TEXT_LENGTH
    min_fragment_length: int = DEFAULT_PASTE_MIN_FRAGMENT_LENGTH


@dataclass(frozen=True)
class SinglePaste:
    text: str
    field: PasteField = PasteField.TITLE


@dataclass(frozen=True)
class PasteCandidates:
    text: str
    field: PasteField = PasteField.TITLE
    fragments: tuple[str, ...] = ()


PasteResult = Union[SinglePaste, PasteCandidates]


def _fragments(text: str) -> list[str]:
    # Inline "1. foo 2. bar" lists: each marker starts a new fragment.
    text = _NUMBERED_RE.sub("\n", text)
    return [part.strip() for part in _SEPARATORS_RE.split(text) if part.strip()]


def looks_like_list(text: str, fragments: list[str]) -> bool:
    """Numbered markers, bullet markers, or more than two fragments."""
    return bool(_NUMBERED_RE.search(text) or _BULLET_RE.search(text)) or len(fragments) > 2


def detect_multiple_tasks(text: str, settings: PasteSettings = PasteSettings()) -> list[str]:
    """Return candidate task strings, or ``[]`` when *text* reads as one task."""
    text = (text or "").strip()
    fragments = _fragments(text)
    if len(fragments) < 2 or len(text) < settings.min_text_length:
        return []
    if not looks_like_list(text, fragments):
        return []

    candidates: list[str] = []
    for fragment in fragments:
        cleaned = _LEADING_MARKER_RE.sub("", fragment).strip()
        if cleaned.isdigit() or len(cleaned) < settings.min_fragment_length:
            continue
        candidates.append(cleaned)
    # A lone surviving fragment is not a split.
    return candidates if len(candidates) > 1 else []


def segment_paste(
    text: str,
    field: PasteField = PasteField.TITLE,
    settings: PasteSettings = PasteSettings(),
) -> PasteResult:
    """Classify pasted *text* for the draft form *field*."""
    candidates = detect_multiple_tasks(text, settings)
    if not candidates:
        return SinglePaste(text=(text or "").strip(), field=PasteField(field))
    return PasteCandidates(text=text.strip(), field=PasteField(field), fragments=tuple(candidates))
