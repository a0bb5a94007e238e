"""Provide the public `teamtrack` package exports."""

from __future__ import annotations

from .aggregation.board import TaskBoard
from .snapshot import load_snapshot

__all__ = ["TaskBoard", "load_snapshot"]
