"""Tests for mediasegments.chapters."""

from unittest.mock import MagicMock

import pytest

from mediasegments.chapters import ChapterAnalyzer
from mediasegments.config import AnalyzerConfig, ChapterConfig
from mediasegments.models import AnalysisMode, Chapter, QueuedMedia, Segment

EPISODE = QueuedMedia(item_id="ep1", name="Pilot", series_name="Show", season_number=1, duration=1500.0)


@pytest.fixture
def analyzer(config) -> ChapterAnalyzer:
    return ChapterAnalyzer(MagicMock(), config)


class TestFindMatchingChapter:
    """Tests for ChapterAnalyzer.find_matching_chapter()."""

    def test_intro_chapter(self, analyzer) -> None:
        chapters = [Chapter("Recap", 0.0), Chapter("Intro", 60.0), Chapter("Episode", 150.0)]
        pattern = analyzer.config.chapters.introduction_pattern

        segment = analyzer.find_matching_chapter(
            EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION
        )

        assert segment == Segment("ep1", 60.0, 150.0, True)

    @pytest.mark.parametrize("name", ["Opening", "OP", "Introduction", "Cold Open Intro"])
    def test_intro_names(self, analyzer, name) -> None:
        chapters = [Chapter(name, 0.0), Chapter("Episode", 90.0)]
        pattern = analyzer.config.chapters.introduction_pattern
        assert analyzer.find_matching_chapter(EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION)

    @pytest.mark.parametrize("name", ["Intro End", "Introspection", "Episode"])
    def test_non_intro_names(self, analyzer, name) -> None:
        chapters = [Chapter(name, 0.0), Chapter("Episode", 90.0)]
        pattern = analyzer.config.chapters.introduction_pattern
        assert (
            analyzer.find_matching_chapter(EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION)
            is None
        )

    def test_chapter_too_long(self, analyzer) -> None:
        chapters = [Chapter("Intro", 0.0), Chapter("Episode", 200.0)]
        pattern = analyzer.config.chapters.introduction_pattern
        assert (
            analyzer.find_matching_chapter(EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION)
            is None
        )

    def test_chapter_too_short(self, analyzer) -> None:
        chapters = [Chapter("Intro", 0.0), Chapter("Episode", 10.0)]
        pattern = analyzer.config.chapters.introduction_pattern
        assert (
            analyzer.find_matching_chapter(EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION)
            is None
        )

    def test_first_match_wins(self, analyzer) -> None:
        chapters = [
            Chapter("Intro", 0.0),
            Chapter("Episode", 60.0),
            Chapter("Intro", 600.0),
            Chapter("Episode", 660.0),
        ]
        pattern = analyzer.config.chapters.introduction_pattern
        segment = analyzer.find_matching_chapter(
            EPISODE, chapters, pattern, AnalysisMode.INTRODUCTION
        )
        assert segment.start == 0.0

    def test_unnamed_chapters_skipped(self, analyzer) -> None:
        chapters = [Chapter(None, 0.0), Chapter("  ", 30.0), Chapter("Episode", 90.0)]
        assert (
            analyzer.find_matching_chapter(EPISODE, chapters, ".*", AnalysisMode.INTRODUCTION)
            is None
        )

    def test_last_chapter_credits(self, analyzer) -> None:
        chapters = [Chapter("Episode", 0.0), Chapter("End Credits", 1380.0)]
        pattern = analyzer.config.chapters.credits_pattern

        segment = analyzer.find_matching_chapter(EPISODE, chapters, pattern, AnalysisMode.CREDITS)

        assert segment == Segment("ep1", 1380.0, 1500.0, True)

    def test_movie_credits_may_be_longer(self, analyzer) -> None:
        movie = QueuedMedia(item_id="m1", name="Film", duration=7200.0)
        chapters = [Chapter("Film", 0.0), Chapter("Credits", 6600.0)]
        pattern = analyzer.config.chapters.credits_pattern

        segment = analyzer.find_matching_chapter(movie, chapters, pattern, AnalysisMode.CREDITS)

        assert segment == Segment("m1", 6600.0, 7200.0, False)


class TestAnalyzeMediaFiles:
    """Tests for ChapterAnalyzer.analyze_media_files()."""

    def test_batch(self, config) -> None:
        other = QueuedMedia(item_id="ep2", name="Two", series_name="Show", duration=1500.0)
        provider = MagicMock()
        provider.get_chapters.side_effect = lambda item: (
            [Chapter("Intro", 30.0), Chapter("Episode", 90.0)] if item.item_id == "ep1" else []
        )

        result = ChapterAnalyzer(provider, config).analyze_media_files(
            [EPISODE, other], AnalysisMode.INTRODUCTION
        )

        assert result.analyzed == {"ep1": Segment("ep1", 30.0, 90.0, True)}
        assert result.not_analyzed == [other]

    def test_empty_pattern_disables_analyzer(self) -> None:
        config = AnalyzerConfig(chapters=ChapterConfig(introduction_pattern="  "))
        provider = MagicMock()

        result = ChapterAnalyzer(provider, config).analyze_media_files(
            [EPISODE], AnalysisMode.INTRODUCTION
        )

        assert result.analyzed == {}
        assert result.not_analyzed == [EPISODE]
        provider.get_chapters.assert_not_called()

    def test_cancelled(self, config) -> None:
        provider = MagicMock()

        result = ChapterAnalyzer(provider, config).analyze_media_files(
            [EPISODE], AnalysisMode.CREDITS, cancelled=lambda: True
        )

        assert result.cancelled
        assert result.not_analyzed == [EPISODE]
        provider.get_chapters.assert_not_called()
