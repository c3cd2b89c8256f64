"""Value types shared by every analyzer.

All times are measured in seconds relative to the beginning of the media file.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np

# Seconds of audio in one fingerprint point. Fixed by the Chromaprint format.
SAMPLES_TO_SECONDS = 0.128


class AnalysisMode(Enum):
    """Kind of segment being searched for."""

    INTRODUCTION = "introduction"
    CREDITS = "credits"


@dataclass(frozen=True, slots=True)
class TimeRange:
    """A start/end time pair in seconds.

    A zero range (start == end == 0) stands for "nothing found".
    """

    start: float = 0.0
    end: float = 0.0

    @property
    def duration(self) -> float:
        return self.end - self.start

    def intersects(self, other: TimeRange) -> bool:
        """Return True if the two ranges overlap (touching edges do not count)."""
        return self.start < other.end and other.start < self.end

    def with_start(self, start: float) -> TimeRange:
        return replace(self, start=start)

    def with_end(self, end: float) -> TimeRange:
        return replace(self, end=end)

    def shifted(self, offset: float) -> TimeRange:
        return TimeRange(self.start + offset, self.end + offset)


@dataclass(frozen=True, slots=True)
class Segment:
    """A detected introduction or credits range for one media item."""

    item_id: str
    start: float = 0.0
    end: float = 0.0
    is_episode: bool = True

    @classmethod
    def empty(cls, item_id: str, is_episode: bool = True) -> Segment:
        """Segment signalling that nothing was found for *item_id*."""
        return cls(item_id=item_id, is_episode=is_episode)

    @classmethod
    def from_range(cls, item_id: str, time_range: TimeRange, is_episode: bool = True) -> Segment:
        return cls(
            item_id=item_id,
            start=time_range.start,
            end=time_range.end,
            is_episode=is_episode,
        )

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def valid(self) -> bool:
        """Invalid segments must never be handed to the host."""
        return self.end > 0

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    def with_end(self, end: float) -> Segment:
        return replace(self, end=end)

    def shifted(self, offset: float) -> Segment:
        return replace(self, start=self.start + offset, end=self.end + offset)


@dataclass(frozen=True, slots=True)
class QueuedMedia:
    """An episode or movie queued for analysis.

    Attributes:
        item_id: Host identifier of the media item
        name: Episode or movie title
        path: Full path to the media file
        series_name: Series name, empty for movies
        season_number: Season number for episodes
        source_name: Source/quality label (1080p, 4k, ...) for movies
        duration: Total duration of the file in seconds
        is_analyzed: Whether a previous run already analyzed this item
        intro_fingerprint_end: Timestamp to stop searching for an introduction at
        credits_fingerprint_start: Timestamp the credits fingerprint was extracted from
    """

    item_id: str
    name: str = ""
    path: str = ""
    series_name: str = ""
    season_number: int = 0
    source_name: str = ""
    duration: float = 0.0
    is_analyzed: bool = False
    intro_fingerprint_end: float = 0.0
    credits_fingerprint_start: float = 0.0

    @property
    def is_episode(self) -> bool:
        return bool(self.series_name)

    @property
    def full_name(self) -> str:
        if self.is_episode:
            return f"{self.series_name} S{self.season_number} - {self.name}"
        return f"{self.name} ({self.source_name})"


@dataclass(frozen=True, slots=True)
class BlackFrame:
    """A black frame reported by the frame detector.

    ``time`` is relative to the start of the probed window.
    """

    time: float
    percentage: float = 100.0


@dataclass(frozen=True, slots=True)
class Chapter:
    """A named chapter marker."""

    name: str | None
    start: float


@dataclass(frozen=True, eq=False)
class FingerprintResult:
    """Outcome of a fingerprint request.

    Failures are common (corrupt audio, missing streams) so they are carried
    as data: ``error`` holds the reason and ``points`` is empty.
    """

    points: np.ndarray
    error: str | None = None

    @classmethod
    def success(cls, points: np.ndarray | list[int]) -> FingerprintResult:
        return cls(points=np.asarray(points, dtype=np.uint32))

    @classmethod
    def failed(cls, reason: str) -> FingerprintResult:
        return cls(points=np.empty(0, dtype=np.uint32), error=reason)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AnalysisResult:
    """What an analyzer hands back to the host after one batch."""

    analyzed: dict[str, Segment] = field(default_factory=dict)
    not_analyzed: list[QueuedMedia] = field(default_factory=list)
    non_comparable: list[QueuedMedia] = field(default_factory=list)  # too few peers
    cancelled: bool = False

    def merge(self, later: AnalysisResult) -> AnalysisResult:
        """Combine with the result of an analyzer that ran on our leftovers."""
        analyzed = {**self.analyzed, **later.analyzed}

        non_comparable: list[QueuedMedia] = []
        excluded = set(analyzed)
        for item in [*self.non_comparable, *later.non_comparable]:
            if item.item_id not in excluded:
                non_comparable.append(item)
                excluded.add(item.item_id)

        not_analyzed: list[QueuedMedia] = []
        for item in [*self.not_analyzed, *later.not_analyzed]:
            if item.item_id not in excluded:
                not_analyzed.append(item)
                excluded.add(item.item_id)

        return AnalysisResult(
            analyzed=analyzed,
            not_analyzed=not_analyzed,
            non_comparable=non_comparable,
            cancelled=self.cancelled or later.cancelled,
        )
