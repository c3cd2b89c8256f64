"""Tests for mediasegments.pipeline."""

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from mediasegments.models import (
    SAMPLES_TO_SECONDS,
    AnalysisMode,
    BlackFrame,
    Chapter,
    FingerprintResult,
    Segment,
)
from mediasegments.pipeline import AnalyzerChain


def _fingerprints(points) -> MagicMock:
    provider = MagicMock()
    provider.fingerprint.side_effect = lambda item, mode: FingerprintResult.success(
        points[item.item_id]
    )
    return provider


def _chapters(by_item: dict[str, list[Chapter]]) -> MagicMock:
    provider = MagicMock()
    provider.get_chapters.side_effect = lambda item: by_item.get(item.item_id, [])
    return provider


def _black_frames_after(seconds_before_end: float) -> MagicMock:
    """Black frames in the last *seconds_before_end* seconds of every file."""

    def detect(item, time_range, minimum_percentage):
        black_from = item.duration - seconds_before_end
        if time_range.end <= black_from:
            return []
        return [BlackFrame(max(time_range.start, black_from) - time_range.start)]

    detector = MagicMock()
    detector.detect_black_frames.side_effect = detect
    return detector


@pytest.fixture
def shared_points(make_points, make_episode):
    intro = make_points(200)
    return {
        "ep1": make_episode(intro, prefix=100),
        "ep2": make_episode(intro, prefix=200),
        "ep3": make_episode(intro, prefix=300),
    }


@pytest.fixture
def unrelated_points(make_points):
    return {f"ep{i}": make_points(600) for i in range(1, 4)}


class TestAnalyzerChain:
    """Tests for AnalyzerChain.run()."""

    def test_fingerprints_only(self, strict_config, season, shared_points) -> None:
        chain = AnalyzerChain(_fingerprints(shared_points), config=strict_config)

        result = chain.run(season, AnalysisMode.INTRODUCTION)

        assert set(result.analyzed) == {"ep1", "ep2", "ep3"}
        assert result.not_analyzed == []

    def test_chapters_take_priority(self, strict_config, season, shared_points) -> None:
        fingerprints = _fingerprints(shared_points)
        chapters = _chapters({"ep1": [Chapter("Intro", 30.0), Chapter("Episode", 90.0)]})
        chain = AnalyzerChain(fingerprints, chapters=chapters, config=strict_config)

        result = chain.run(season, AnalysisMode.INTRODUCTION)

        assert result.analyzed["ep1"] == Segment("ep1", 30.0, 90.0, True)
        assert result.analyzed["ep2"].start == pytest.approx(200 * SAMPLES_TO_SECONDS)
        assert result.analyzed["ep3"].start == pytest.approx(300 * SAMPLES_TO_SECONDS)
        fingerprinted = [c.args[0].item_id for c in fingerprints.fingerprint.call_args_list]
        assert fingerprinted == ["ep2", "ep3"]

    def test_every_item_has_chapters(self, config, season) -> None:
        fingerprints = MagicMock()
        chapters = _chapters(
            {item.item_id: [Chapter("Intro", 0.0), Chapter("Episode", 60.0)] for item in season}
        )

        result = AnalyzerChain(fingerprints, chapters=chapters, config=config).run(
            season, AnalysisMode.INTRODUCTION
        )

        assert len(result.analyzed) == 3
        fingerprints.fingerprint.assert_not_called()

    def test_black_frames_pick_up_leftovers(self, config, season, unrelated_points) -> None:
        black_frames = _black_frames_after(60.0)
        chain = AnalyzerChain(
            _fingerprints(unrelated_points), black_frames=black_frames, config=config
        )

        result = chain.run(season, AnalysisMode.CREDITS)

        assert set(result.analyzed) == {"ep1", "ep2", "ep3"}
        for segment in result.analyzed.values():
            assert abs(segment.start - 1440.0) <= 4.0
            assert segment.end == 1500.0
        assert result.not_analyzed == []

    def test_black_frames_only_for_credits(self, config, season, unrelated_points) -> None:
        black_frames = _black_frames_after(60.0)
        chain = AnalyzerChain(
            _fingerprints(unrelated_points), black_frames=black_frames, config=config
        )

        result = chain.run(season, AnalysisMode.INTRODUCTION)

        assert result.analyzed == {}
        assert result.not_analyzed == season
        black_frames.detect_black_frames.assert_not_called()

    def test_lone_item_resolved_by_black_frames(self, config, season, unrelated_points) -> None:
        chain = AnalyzerChain(
            _fingerprints(unrelated_points), black_frames=_black_frames_after(60.0), config=config
        )

        result = chain.run(season[:1], AnalysisMode.CREDITS)

        assert set(result.analyzed) == {"ep1"}
        assert result.non_comparable == []
        assert result.not_analyzed == []

    def test_lone_item_without_black_frames(self, config, season, unrelated_points) -> None:
        chain = AnalyzerChain(_fingerprints(unrelated_points), config=config)

        result = chain.run(season[:1], AnalysisMode.INTRODUCTION)

        assert result.analyzed == {}
        assert result.non_comparable == season[:1]
        assert result.not_analyzed == []

    def test_analyzed_items_serve_as_reference(self, strict_config, season, shared_points) -> None:
        queue = [replace(season[0], is_analyzed=True), season[1]]
        chain = AnalyzerChain(_fingerprints(shared_points), config=strict_config)

        result = chain.run(queue, AnalysisMode.INTRODUCTION)

        assert "ep2" in result.analyzed
        assert result.non_comparable == []

    def test_black_frames_skip_analyzed_reference(self, config, season, unrelated_points) -> None:
        queue = [replace(season[0], is_analyzed=True), season[1]]
        black_frames = _black_frames_after(60.0)
        chain = AnalyzerChain(
            _fingerprints(unrelated_points), black_frames=black_frames, config=config
        )

        result = chain.run(queue, AnalysisMode.CREDITS)

        assert set(result.analyzed) == {"ep2"}
        assert result.not_analyzed == []
        scanned = {call.args[0].item_id for call in black_frames.detect_black_frames.call_args_list}
        assert scanned == {"ep2"}

    def test_cancelled_discards_batch(self, config, season, shared_points) -> None:
        chain = AnalyzerChain(_fingerprints(shared_points), config=config)

        result = chain.run(season, AnalysisMode.INTRODUCTION, cancelled=lambda: True)

        assert result.cancelled
        assert result.analyzed == {}
        assert result.not_analyzed == season

    def test_cancelled_after_chapters(self, config, season, shared_points) -> None:
        chapters = _chapters({"ep1": [Chapter("Intro", 30.0), Chapter("Episode", 90.0)]})
        chain = AnalyzerChain(_fingerprints(shared_points), chapters=chapters, config=config)
        # Chapter analyzer checks once per item, the matcher then cancels
        checks = iter([False, False, False])

        result = chain.run(
            season, AnalysisMode.INTRODUCTION, cancelled=lambda: next(checks, True)
        )

        assert result.cancelled
        assert result.analyzed == {}
        assert result.not_analyzed == season
