"""Chapter name analyzer."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from mediasegments.config import AnalyzerConfig
from mediasegments.models import AnalysisMode, AnalysisResult, Chapter, QueuedMedia, Segment, TimeRange
from mediasegments.protocols import ChapterProvider

logger = logging.getLogger(__name__)


class ChapterAnalyzer:
    """Use chapter markers named like "Intro" or "Credits" as segments."""

    def __init__(self, chapters: ChapterProvider, config: AnalyzerConfig | None = None):
        self.chapters = chapters
        self.config = config or AnalyzerConfig()

    def analyze_media_files(
        self,
        analysis_queue: list[QueuedMedia],
        mode: AnalysisMode,
        cancelled: Callable[[], bool] | None = None,
    ) -> AnalysisResult:
        expression = self.config.chapters.pattern_for(mode)
        if not expression or not expression.strip():
            return AnalysisResult(not_analyzed=list(analysis_queue))

        pattern = re.compile(expression)
        segments: dict[str, Segment] = {}

        for item in analysis_queue:
            if cancelled and cancelled():
                return AnalysisResult(not_analyzed=list(analysis_queue), cancelled=True)

            segment = self.find_matching_chapter(
                item, self.chapters.get_chapters(item), pattern, mode
            )
            if segment is not None:
                segments[item.item_id] = segment

        if segments:
            logger.info("Found %d %s chapter(s)", len(segments), mode.value)

        return AnalysisResult(
            analyzed=segments,
            not_analyzed=[item for item in analysis_queue if item.item_id not in segments],
        )

    def find_matching_chapter(
        self,
        item: QueuedMedia,
        chapters: list[Chapter],
        expression: str | re.Pattern[str],
        mode: AnalysisMode,
    ) -> Segment | None:
        """Return the first chapter whose name matches *expression*.

        Each chapter runs until the next one starts. In credits mode a
        virtual chapter is appended at the end of the file, since the credits
        are often the last chapter.

        Returns:
            Segment spanning the matching chapter, or None if no chapter matched
        """
        pattern = re.compile(expression) if isinstance(expression, str) else expression
        minimum = self.config.intro.minimum_intro_duration
        maximum = self.config.maximum_duration(mode, item.is_episode)

        chapters = list(chapters)
        if mode == AnalysisMode.CREDITS:
            chapters.append(Chapter(name=None, start=item.duration))

        for current, following in zip(chapters, chapters[1:]):
            if not current.name or not current.name.strip():
                continue

            chapter_range = TimeRange(current.start, following.start)
            base_message = (
                f'{item.path or item.full_name}: Chapter "{current.name}" '
                f"({chapter_range.start} - {chapter_range.end})"
            )

            if chapter_range.duration < minimum or chapter_range.duration > maximum:
                logger.debug("%s: ignoring (invalid duration)", base_message)
                continue

            if not pattern.search(current.name):
                logger.debug("%s: ignoring (does not match regular expression)", base_message)
                continue

            logger.debug("%s: okay", base_message)
            return Segment.from_range(item.item_id, chapter_range, item.is_episode)

        return None
