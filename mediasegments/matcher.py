"""Cross-episode matching of audio fingerprints.

Every item in a season (or batch) is compared against the others until a
shared introduction or credits sequence is found. Results for one batch are
all-or-nothing: a cancelled run reports no analyzed items at all.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from mediasegments.aligner import SegmentAligner
from mediasegments.config import AnalyzerConfig
from mediasegments.models import (
    AnalysisMode,
    AnalysisResult,
    QueuedMedia,
    Segment,
    TimeRange,
)
from mediasegments.protocols import FingerprintProvider, SilenceDetector

logger = logging.getLogger(__name__)


class FingerprintMatcher:
    """Find introductions or credits shared between the items of a batch."""

    def __init__(
        self,
        fingerprints: FingerprintProvider,
        silence: SilenceDetector | None = None,
        config: AnalyzerConfig | None = None,
        aligner: SegmentAligner | None = None,
    ):
        """Initialize matcher.

        Args:
            fingerprints: Source of Chromaprint points per item
            silence: Silence detector used to refine introduction ends
                (refinement is skipped when None)
            config: Analyzer configuration (defaults if None)
            aligner: Aligner instance (built from config if None)
        """
        self.fingerprints = fingerprints
        self.silence = silence
        self.config = config or AnalyzerConfig()
        self.aligner = aligner or SegmentAligner(self.config)

    def analyze_media_files(
        self,
        analysis_queue: list[QueuedMedia],
        mode: AnalysisMode,
        cancelled: Callable[[], bool] | None = None,
    ) -> AnalysisResult:
        """Analyze one season/batch.

        Args:
            analysis_queue: All items of the batch, analyzed or not
            mode: Segment kind to search for
            cancelled: Optional callable returning True to abort early

        Returns:
            AnalysisResult with the discovered segments, the items without one
            and, when the batch is too small to compare, the lone item in
            ``non_comparable``.
        """
        is_cancelled = cancelled or (lambda: False)
        queue = [item for item in analysis_queue if not item.is_analyzed]

        # A lone new episode can still be compared against an analyzed one
        if len(queue) == 1 and len(analysis_queue) > 1:
            reference = next((item for item in analysis_queue if item.is_analyzed), None)
            if reference is not None:
                queue.append(reference)

        if not queue:
            return AnalysisResult()

        if len(queue) == 1:
            item = queue[0]
            logger.info(
                "Found just one item for %s. Skipping as we need at least two.",
                item.full_name,
            )
            return AnalysisResult(non_comparable=[item])

        fingerprint_cache: dict[str, np.ndarray] = {}
        for item in queue:
            result = self.fingerprints.fingerprint(item, mode)
            if result.ok:
                fingerprint_cache[item.item_id] = result.points
            else:
                logger.warning("Fingerprinting %s failed: %s", item.full_name, result.error)
                fingerprint_cache[item.item_id] = np.empty(0, dtype=np.uint32)

            if is_cancelled():
                return self._cancelled(analysis_queue)

        segments = self._match_queue(queue, fingerprint_cache, mode, is_cancelled)
        if segments is None:
            return self._cancelled(analysis_queue)

        if mode == AnalysisMode.INTRODUCTION and self.silence is not None:
            segments = self.adjust_intro_end_times(analysis_queue, segments)

        if segments:
            logger.info("Found %d %s segment(s)", len(segments), mode.value)
        else:
            logger.debug("No segments found")

        return AnalysisResult(
            analyzed=segments,
            not_analyzed=[
                item for item in queue
                if item.item_id not in segments and not item.is_analyzed
            ],
        )

    def _match_queue(
        self,
        queue: list[QueuedMedia],
        fingerprint_cache: dict[str, np.ndarray],
        mode: AnalysisMode,
        is_cancelled: Callable[[], bool],
    ) -> dict[str, Segment] | None:
        """Pairwise search; returns None when cancelled."""
        segments: dict[str, Segment] = {}
        remaining = list(queue)

        while remaining:
            if is_cancelled():
                return None

            current = remaining.pop(0)
            for other in remaining:
                current_segment, other_segment = self.aligner.compare(
                    current.item_id,
                    fingerprint_cache[current.item_id],
                    other.item_id,
                    fingerprint_cache[other.item_id],
                    mode,
                    lhs_is_episode=current.is_episode,
                    rhs_is_episode=other.is_episode,
                )

                if not self._acceptable(current_segment, current, mode) or not self._acceptable(
                    other_segment, other, mode
                ):
                    continue

                # Fingerprints for credits start part way into the file
                if mode == AnalysisMode.CREDITS:
                    current_segment = current_segment.shifted(current.credits_fingerprint_start)
                    other_segment = other_segment.shifted(other.credits_fingerprint_start)

                self._keep_longest(segments, current_segment)
                self._keep_longest(segments, other_segment)
                break

        return segments

    def _acceptable(self, segment: Segment, item: QueuedMedia, mode: AnalysisMode) -> bool:
        return segment.valid and segment.duration <= self.config.maximum_duration(
            mode, item.is_episode
        )

    @staticmethod
    def _keep_longest(segments: dict[str, Segment], candidate: Segment) -> None:
        saved = segments.get(candidate.item_id)
        if saved is None or candidate.duration > saved.duration:
            segments[candidate.item_id] = candidate

    @staticmethod
    def _cancelled(analysis_queue: list[QueuedMedia]) -> AnalysisResult:
        logger.info("Analysis cancelled, discarding %d item(s)", len(analysis_queue))
        return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

    def adjust_intro_end_times(
        self,
        items: list[QueuedMedia],
        intros: dict[str, Segment],
    ) -> dict[str, Segment]:
        """Move every introduction end to the start of a nearby silence."""
        adjusted = dict(intros)
        for item in items:
            intro = intros.get(item.item_id)
            if intro is None:
                continue
            adjusted[item.item_id] = self.adjust_intro_end(item, intro)
        return adjusted

    def adjust_intro_end(self, item: QueuedMedia, intro: Segment) -> Segment:
        """Return *intro* ending at the first qualifying silence, if any.

        A silence qualifies when it overlaps the last seconds of the intro,
        is long enough, and does not start before the intro does.
        """
        if self.silence is None:
            return intro

        settings = self.config.silence
        intro_end = TimeRange(intro.end - settings.intro_end_window, intro.end)
        limit = int(intro.end + settings.search_padding)

        for silence in self.silence.detect_silence(item, limit):
            if (
                not intro_end.intersects(silence)
                or silence.duration < settings.silence_detection_minimum_duration
                or silence.start < intro.start
            ):
                continue

            logger.debug(
                "%s: intro end %.2f -> %.2f (silence %.2f-%.2f)",
                item.full_name,
                intro.end,
                silence.start,
                silence.start,
                silence.end,
            )
            return intro.with_end(silence.start)

        return intro
