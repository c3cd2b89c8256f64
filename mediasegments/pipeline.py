"""Run the analyzers for one batch in priority order.

Chapter markers are trusted first, audio fingerprints second and, for
credits, black frames last. Each analyzer only sees what the previous ones
left unanalyzed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from mediasegments.blackframe import BlackFrameAnalyzer
from mediasegments.chapters import ChapterAnalyzer
from mediasegments.config import AnalyzerConfig
from mediasegments.matcher import FingerprintMatcher
from mediasegments.models import AnalysisMode, AnalysisResult, QueuedMedia
from mediasegments.protocols import (
    BlackFrameDetector,
    ChapterProvider,
    FingerprintProvider,
    SilenceDetector,
)

logger = logging.getLogger(__name__)


class AnalyzerChain:
    """Chapter, fingerprint and black-frame analyzers run back to back."""

    def __init__(
        self,
        fingerprints: FingerprintProvider,
        silence: SilenceDetector | None = None,
        black_frames: BlackFrameDetector | None = None,
        chapters: ChapterProvider | None = None,
        config: AnalyzerConfig | None = None,
    ):
        self.config = config or AnalyzerConfig()
        self.chapter_analyzer = ChapterAnalyzer(chapters, self.config) if chapters else None
        self.matcher = FingerprintMatcher(fingerprints, silence, self.config)
        self.black_frame_analyzer = (
            BlackFrameAnalyzer(black_frames, self.config) if black_frames else None
        )

    def run(
        self,
        analysis_queue: list[QueuedMedia],
        mode: AnalysisMode,
        cancelled: Callable[[], bool] | None = None,
    ) -> AnalysisResult:
        """Analyze one batch with every configured analyzer."""
        pending = [item for item in analysis_queue if not item.is_analyzed]
        result = AnalysisResult(not_analyzed=pending)

        if self.chapter_analyzer is not None and pending:
            result = self.chapter_analyzer.analyze_media_files(pending, mode, cancelled)
            if result.cancelled:
                return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

        # Items analyzed by an earlier run stay in the batch as references
        pending_ids = {item.item_id for item in result.not_analyzed}
        fingerprint_queue = [
            item for item in analysis_queue if item.item_id in pending_ids or item.is_analyzed
        ]
        if pending_ids:
            result = result.merge(
                self.matcher.analyze_media_files(fingerprint_queue, mode, cancelled)
            )
            if result.cancelled:
                return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

        if mode == AnalysisMode.CREDITS and self.black_frame_analyzer is not None:
            leftovers = self._leftovers(result)
            if leftovers:
                result = result.merge(
                    self.black_frame_analyzer.analyze_media_files(leftovers, mode, cancelled)
                )
                if result.cancelled:
                    return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

        logger.info(
            "%s: %d analyzed, %d without segment",
            mode.value,
            len(result.analyzed),
            len(result.not_analyzed),
        )
        return result

    @staticmethod
    def _leftovers(result: AnalysisResult) -> list[QueuedMedia]:
        items = list(result.not_analyzed)
        known = {item.item_id for item in items}
        items += [item for item in result.non_comparable if item.item_id not in known]
        return items
