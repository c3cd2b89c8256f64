"""Build analysis queue entries from host metadata."""

from __future__ import annotations

import logging

from mediasegments.config import AnalyzerConfig
from mediasegments.models import QueuedMedia

logger = logging.getLogger(__name__)

# Files shorter than this are fingerprinted in full when searching for intros
SHORT_FILE_SECONDS = 5 * 60


def intro_fingerprint_end(duration: float, config: AnalyzerConfig) -> float:
    """Seconds from the start of a file fingerprinted for introductions."""
    fingerprint_duration = duration
    if fingerprint_duration >= SHORT_FILE_SECONDS:
        fingerprint_duration *= config.queue.analysis_percent / 100

    return min(fingerprint_duration, 60 * config.queue.analysis_length_limit)


def credits_fingerprint_start(duration: float, is_episode: bool, config: AnalyzerConfig) -> float:
    """Timestamp the credits fingerprint starts at."""
    return max(0.0, duration - config.credits.maximum_for(is_episode))


def build_queued_media(
    item_id: str,
    duration: float | None,
    config: AnalyzerConfig | None = None,
    *,
    name: str = "",
    path: str = "",
    series_name: str = "",
    season_number: int = 0,
    source_name: str = "",
    is_analyzed: bool = False,
) -> QueuedMedia | None:
    """Create a queue entry, or None when the host has no duration for the item."""
    config = config or AnalyzerConfig()

    if not duration or duration <= 0:
        logger.debug("Not queuing %s (%s) as no duration was provided", name or item_id, item_id)
        return None

    is_episode = bool(series_name)
    return QueuedMedia(
        item_id=item_id,
        name=name,
        path=path,
        series_name=series_name,
        season_number=season_number,
        source_name=source_name,
        duration=duration,
        is_analyzed=is_analyzed,
        intro_fingerprint_end=intro_fingerprint_end(duration, config),
        credits_fingerprint_start=credits_fingerprint_start(duration, is_episode, config),
    )
