"""Protocol definitions for the host-side collaborators.

The analyzers never decode media themselves. Fingerprints, black frames,
silence and chapters come from objects the host injects; any object with the
matching methods will do.
"""

from typing import Protocol, runtime_checkable

from mediasegments.models import (
    AnalysisMode,
    BlackFrame,
    Chapter,
    FingerprintResult,
    QueuedMedia,
    TimeRange,
)


@runtime_checkable
class FingerprintProvider(Protocol):
    """Supplies Chromaprint points for the part of a file relevant to *mode*."""

    def fingerprint(self, item: QueuedMedia, mode: AnalysisMode) -> FingerprintResult: ...


@runtime_checkable
class BlackFrameDetector(Protocol):
    """Reports black frames inside a time window.

    Returned frame times are relative to ``time_range.start``.
    """

    def detect_black_frames(
        self, item: QueuedMedia, time_range: TimeRange, minimum_percentage: int
    ) -> list[BlackFrame]: ...


@runtime_checkable
class SilenceDetector(Protocol):
    """Reports silent intervals from the start of a file up to *limit* seconds."""

    def detect_silence(self, item: QueuedMedia, limit: int) -> list[TimeRange]: ...


@runtime_checkable
class ChapterProvider(Protocol):
    """Supplies chapter markers for an item, ordered by start time."""

    def get_chapters(self, item: QueuedMedia) -> list[Chapter]: ...
