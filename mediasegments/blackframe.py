"""End credits detection by bisecting the tail of a file for black frames.

Credits made of text on a black background start at the first black frame
near the end of the file. Each probe asks the frame detector about a two
second window; bisection keeps the number of probes logarithmic in the size
of the search window.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from mediasegments.config import AnalyzerConfig
from mediasegments.models import AnalysisMode, AnalysisResult, QueuedMedia, Segment, TimeRange
from mediasegments.protocols import BlackFrameDetector

logger = logging.getLogger(__name__)

# Stop bisecting once the window holding the first black frame is this small
MAXIMUM_ERROR = 4.0
PROBE_LENGTH = 2.0


class UnsupportedAnalysisModeError(ValueError):
    """Raised when an analyzer is asked for a segment kind it cannot find."""
    pass


class BlackFrameAnalyzer:
    """Detect end credits that start with black frames."""

    def __init__(
        self,
        detector: BlackFrameDetector,
        config: AnalyzerConfig | None = None,
        maximum_error: float = MAXIMUM_ERROR,
    ):
        self.detector = detector
        self.config = config or AnalyzerConfig()
        self.maximum_error = maximum_error

    def analyze_media_files(
        self,
        analysis_queue: list[QueuedMedia],
        mode: AnalysisMode,
        cancelled: Callable[[], bool] | None = None,
    ) -> AnalysisResult:
        """Search every queued item for black-frame credits.

        Args:
            analysis_queue: Items to analyze
            mode: Must be AnalysisMode.CREDITS
            cancelled: Optional callable returning True to abort early

        Raises:
            UnsupportedAnalysisModeError: If mode is not credits
        """
        self._require_credits(mode)

        credits: dict[str, Segment] = {}

        for item in analysis_queue:
            if cancelled and cancelled():
                return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

            segment = self.analyze_media_file(item, mode)
            if segment is None:
                continue

            # Protect against broken timestamps
            if segment.start >= segment.end:
                logger.debug(
                    "%s: discarding credits %.2f-%.2f", item.full_name, segment.start, segment.end
                )
                continue

            credits[item.item_id] = segment

        return AnalysisResult(
            analyzed=credits,
            not_analyzed=[item for item in analysis_queue if item.item_id not in credits],
        )

    def analyze_media_file(
        self,
        item: QueuedMedia,
        mode: AnalysisMode = AnalysisMode.CREDITS,
        minimum_percentage: int | None = None,
    ) -> Segment | None:
        """Bisect the end of one file for the first black frame.

        Args:
            item: Item to analyze
            mode: Must be AnalysisMode.CREDITS
            minimum_percentage: Percentage of the frame that must be black
                (configured default if None)

        Returns:
            Credits segment running to the end of the file, or None
        """
        self._require_credits(mode)

        if minimum_percentage is None:
            minimum_percentage = self.config.credits.black_frame_minimum_percentage

        # Search window, in seconds before the end of the file
        low = self.config.credits.minimum_credits_duration
        high = min(self.config.credits.maximum_for(item.is_episode), item.duration)
        first_frame_time: float | None = None

        while high - low > self.maximum_error:
            midpoint = (low + high) / 2
            scan_time = item.duration - midpoint
            probe = TimeRange(scan_time, scan_time + PROBE_LENGTH)

            frames = self.detector.detect_black_frames(item, probe, minimum_percentage)
            logger.debug(
                "%s, dur %.1f, bisect [%.2f, %.2f], time [%.2f, %.2f]: %d black frame(s)",
                item.full_name,
                item.duration,
                high,
                low,
                probe.start,
                probe.end,
                len(frames),
            )

            if not frames:
                # Credits start later, closer to the end
                high = midpoint
            else:
                # Credits may start earlier
                low = midpoint
                first_frame_time = frames[0].time + scan_time

        if first_frame_time is None:
            return None

        return Segment(
            item_id=item.item_id,
            start=first_frame_time,
            end=item.duration,
            is_episode=item.is_episode,
        )

    @staticmethod
    def _require_credits(mode: AnalysisMode) -> None:
        if mode != AnalysisMode.CREDITS:
            raise UnsupportedAnalysisModeError(
                f"Black frame analysis only supports credits, not {mode.value}"
            )
