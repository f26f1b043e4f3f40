"""Tuning knobs for the refresh scheduler and the dispatch gate.

Environment parsing happens in settings.py; the core only ever sees these
already-validated values.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RefreshConfig:
    """Identity directory refresh settings."""

    interval_seconds: float


@dataclass(frozen=True)
class DispatchConfig:
    """Notification delivery settings for the dispatch gate."""

    queue_size: int
