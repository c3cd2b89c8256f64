"""Find audio shared between two fingerprint sequences.

Pipeline
--------
1. Build an inverted index (point value -> first position) for both sequences
2. Every left-hand point that also exists on the right, within a small value
   tolerance, yields a candidate shift ``rhs_position - lhs_position``
3. For each unique shift, XOR the aligned sequences and collect the
   timestamps whose points differ in only a few bits
4. The longest run of close-together timestamps is the shared segment
"""

from __future__ import annotations

import logging
import math

import numpy as np

from mediasegments.config import AnalyzerConfig
from mediasegments.models import SAMPLES_TO_SECONDS, AnalysisMode, Segment, TimeRange
from mediasegments.similarity import UINT32_MASK, matching_mask
from mediasegments.timeranges import find_contiguous

logger = logging.getLogger(__name__)

EMPTY_PAIR = (TimeRange(), TimeRange())


def create_inverted_index(points: np.ndarray) -> dict[int, int]:
    """Map every point value to the first position it occurs at."""
    index: dict[int, int] = {}
    for position, point in enumerate(np.asarray(points, dtype=np.uint32).tolist()):
        index.setdefault(point, position)
    return index


class SegmentAligner:
    """Compare two fingerprint sequences and locate their shared segment."""

    def __init__(self, config: AnalyzerConfig | None = None):
        self.config = config or AnalyzerConfig()

    @property
    def maximum_differences(self) -> int:
        return self.config.fingerprint.maximum_fingerprint_point_differences

    @property
    def maximum_time_skip(self) -> float:
        return self.config.fingerprint.maximum_time_skip

    def find_shifts(self, lhs_points: np.ndarray, rhs_points: np.ndarray) -> set[int]:
        """Collect every shift at which the two sequences may line up.

        Values within ``inverted_index_shift`` of each other count as equal
        to absorb fingerprint quantization noise.
        """
        lhs_index = create_inverted_index(lhs_points)
        rhs_index = create_inverted_index(rhs_points)
        window = self.config.fingerprint.inverted_index_shift

        shifts: set[int] = set()
        for point, lhs_position in lhs_index.items():
            for delta in range(-window, window + 1):
                rhs_position = rhs_index.get((point + delta) & UINT32_MASK)
                if rhs_position is not None:
                    shifts.add(rhs_position - lhs_position)
        return shifts

    def similar_times(
        self, lhs_points: np.ndarray, rhs_points: np.ndarray, shift: int
    ) -> tuple[np.ndarray, np.ndarray]:
        """Timestamps (per side) of points that match once *shift* is applied."""
        lhs_points = np.asarray(lhs_points, dtype=np.uint32)
        rhs_points = np.asarray(rhs_points, dtype=np.uint32)

        left_offset = -shift if shift < 0 else 0
        right_offset = shift if shift > 0 else 0
        upper_limit = min(len(lhs_points), len(rhs_points)) - abs(shift)
        if upper_limit <= 0:
            empty = np.empty(0, dtype=np.float64)
            return empty, empty

        mask = matching_mask(
            lhs_points[left_offset : left_offset + upper_limit],
            rhs_points[right_offset : right_offset + upper_limit],
            self.maximum_differences,
        )
        positions = np.flatnonzero(mask)
        return (
            (positions + left_offset) * SAMPLES_TO_SECONDS,
            (positions + right_offset) * SAMPLES_TO_SECONDS,
        )

    def find_contiguous_pair(
        self,
        lhs_points: np.ndarray,
        rhs_points: np.ndarray,
        shift: int,
        mode: AnalysisMode = AnalysisMode.INTRODUCTION,
    ) -> tuple[TimeRange, TimeRange]:
        """Find the longest contiguous region of similar audio at *shift*.

        Returns:
            ``(lhs_range, rhs_range)``; both are zero ranges when the run is
            missing or shorter than the minimum duration for *mode*.
        """
        lhs_times, rhs_times = self.similar_times(lhs_points, rhs_points, shift)
        minimum = self.config.minimum_duration(mode)

        lhs_range = find_contiguous([*lhs_times.tolist(), math.inf], self.maximum_time_skip)
        if lhs_range is None or lhs_range.duration < minimum:
            return EMPTY_PAIR

        rhs_range = find_contiguous([*rhs_times.tolist(), math.inf], self.maximum_time_skip)
        if rhs_range is None or rhs_range.duration < minimum:
            return EMPTY_PAIR

        if mode == AnalysisMode.INTRODUCTION:
            trim = self._intro_end_trim(lhs_range.duration)
            if trim:
                lhs_range = lhs_range.with_end(lhs_range.end - trim)
                rhs_range = rhs_range.with_end(rhs_range.end - trim)

        return lhs_range, rhs_range

    def _intro_end_trim(self, duration: float) -> float:
        """How much to pull in the end of an introduction of *duration*.

        Better to skip slightly less than to clip the start of the episode.
        """
        intro = self.config.intro
        if duration >= intro.long_intro_trim_threshold:
            return 2 * self.maximum_time_skip
        if duration >= intro.short_intro_trim_threshold:
            return self.maximum_time_skip
        return 0.0

    def search_inverted_index(
        self,
        lhs_points: np.ndarray,
        rhs_points: np.ndarray,
        mode: AnalysisMode = AnalysisMode.INTRODUCTION,
    ) -> list[tuple[int, TimeRange, TimeRange]]:
        """Evaluate every candidate shift, in ascending order.

        Returns:
            ``(shift, lhs_range, rhs_range)`` for each shift with a usable run.
        """
        results = []
        for shift in sorted(self.find_shifts(lhs_points, rhs_points)):
            lhs_range, rhs_range = self.find_contiguous_pair(lhs_points, rhs_points, shift, mode)
            if lhs_range.end > 0 and rhs_range.end > 0:
                results.append((shift, lhs_range, rhs_range))
        return results

    def compare(
        self,
        lhs_id: str,
        lhs_points: np.ndarray,
        rhs_id: str,
        rhs_points: np.ndarray,
        mode: AnalysisMode = AnalysisMode.INTRODUCTION,
        lhs_is_episode: bool = True,
        rhs_is_episode: bool = True,
    ) -> tuple[Segment, Segment]:
        """Analyze two items to find a segment shared between them.

        Returns:
            One segment per side; both are empty (invalid) when nothing is
            shared.
        """
        candidates = self.search_inverted_index(lhs_points, rhs_points, mode)
        if not candidates:
            logger.debug("No shared segment between %s and %s", lhs_id, rhs_id)
            return (
                Segment.empty(lhs_id, lhs_is_episode),
                Segment.empty(rhs_id, rhs_is_episode),
            )

        # Longest wins, then smaller |shift|, then earlier start on the side
        # with the lower id, so swapping the arguments picks the same pair
        lhs_first = lhs_id <= rhs_id

        def rank(candidate: tuple[int, TimeRange, TimeRange]) -> tuple[float, int, float, float]:
            shift, lhs_range, rhs_range = candidate
            first, second = (lhs_range, rhs_range) if lhs_first else (rhs_range, lhs_range)
            return (lhs_range.duration, -abs(shift), -first.start, -second.start)

        shift, lhs_range, rhs_range = max(candidates, key=rank)
        logger.debug(
            "%s/%s: %d candidate shift(s), best %+d (%.1fs)",
            lhs_id,
            rhs_id,
            len(candidates),
            shift,
            lhs_range.duration,
        )

        return (
            Segment.from_range(lhs_id, self._snap_to_start(lhs_range), lhs_is_episode),
            Segment.from_range(rhs_id, self._snap_to_start(rhs_range), rhs_is_episode),
        )

    def _snap_to_start(self, time_range: TimeRange) -> TimeRange:
        """Segments beginning in the first few seconds start at the file start."""
        if time_range.start <= self.config.intro.snap_to_start_threshold:
            return time_range.with_start(0.0)
        return time_range
