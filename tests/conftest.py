"""Pytest configuration and fixtures."""

from collections.abc import Callable

import numpy as np
import pytest

from mediasegments.config import AnalyzerConfig, FingerprintConfig
from mediasegments.models import QueuedMedia


@pytest.fixture
def config() -> AnalyzerConfig:
    """Default configuration."""
    return AnalyzerConfig()


@pytest.fixture
def strict_config() -> AnalyzerConfig:
    """Configuration where unrelated random points practically never match."""
    return AnalyzerConfig(
        fingerprint=FingerprintConfig(maximum_fingerprint_point_differences=2),
    )


@pytest.fixture
def make_points() -> Callable[[int], np.ndarray]:
    """Provide a seeded generator of random fingerprint points."""
    rng = np.random.default_rng(1234)

    def _make(length: int) -> np.ndarray:
        return rng.integers(0, 2**32, size=length, dtype=np.uint32)

    return _make


@pytest.fixture
def make_episode(make_points):
    """Provide a builder for ``prefix + shared + suffix`` fingerprints."""

    def _make(shared: np.ndarray, prefix: int, suffix: int = 400) -> np.ndarray:
        return np.concatenate([make_points(prefix), shared, make_points(suffix)]).astype(np.uint32)

    return _make


@pytest.fixture
def season() -> list[QueuedMedia]:
    """Provide three unanalyzed episodes of one season."""
    return [
        QueuedMedia(
            item_id=f"ep{i}",
            name=f"Episode {i}",
            series_name="Show",
            season_number=1,
            duration=1500.0,
            credits_fingerprint_start=1260.0,
        )
        for i in range(1, 4)
    ]
