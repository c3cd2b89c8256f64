"""Configuration management using Pydantic and YAML."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from mediasegments.models import AnalysisMode


class FingerprintConfig(BaseModel):
    """Fingerprint comparison tolerances."""

    maximum_fingerprint_point_differences: int = Field(ge=0, le=32, default=6)
    inverted_index_shift: int = Field(ge=0, le=32, default=2)
    maximum_time_skip: float = Field(gt=0, default=3.5)


class IntroConfig(BaseModel):
    """Introduction search limits."""

    minimum_intro_duration: float = Field(ge=0, default=15)
    maximum_intro_duration: float = Field(gt=0, default=120)
    snap_to_start_threshold: float = Field(ge=0, default=5)
    # Empirically tuned: intros this long get their end pulled in by one or
    # two maximum_time_skip units.
    short_intro_trim_threshold: float = Field(ge=0, default=30)
    long_intro_trim_threshold: float = Field(ge=0, default=90)

    @model_validator(mode="after")
    def _check_ordering(self) -> "IntroConfig":
        if self.maximum_intro_duration < self.minimum_intro_duration:
            raise ValueError("maximum_intro_duration must be >= minimum_intro_duration")
        if self.long_intro_trim_threshold < self.short_intro_trim_threshold:
            raise ValueError("long_intro_trim_threshold must be >= short_intro_trim_threshold")
        return self


class SilenceConfig(BaseModel):
    """Silence-based introduction end refinement."""

    silence_detection_minimum_duration: float = Field(ge=0, default=0.33)
    intro_end_window: float = Field(gt=0, default=15)
    search_padding: float = Field(ge=0, default=2)


class CreditsConfig(BaseModel):
    """End credits search limits."""

    minimum_credits_duration: float = Field(ge=0, default=15)
    maximum_episode_credits_duration: float = Field(gt=0, le=240, default=240)
    maximum_movie_credits_duration: float = Field(gt=0, default=900)
    black_frame_minimum_percentage: int = Field(ge=0, le=100, default=85)

    @model_validator(mode="after")
    def _check_ordering(self) -> "CreditsConfig":
        if self.maximum_episode_credits_duration < self.minimum_credits_duration:
            raise ValueError(
                "maximum_episode_credits_duration must be >= minimum_credits_duration"
            )
        return self

    def maximum_for(self, is_episode: bool) -> float:
        """Longest credits sequence searched for an episode or a movie."""
        if is_episode:
            return self.maximum_episode_credits_duration
        return self.maximum_movie_credits_duration


class QueueConfig(BaseModel):
    """How much of each file is fingerprinted."""

    analysis_percent: float = Field(gt=0, le=100, default=30)
    analysis_length_limit: float = Field(gt=0, default=15)  # minutes


class ChapterConfig(BaseModel):
    """Chapter name patterns."""

    introduction_pattern: str = r"(^|\s)(Intro|Introduction|OP|Opening)(?!\sEnd)(\s|$)"
    credits_pattern: str = r"(^|\s)(Credits?|ED|Ending|Outro)(?!\sEnd)(\s|$)"

    def pattern_for(self, mode: AnalysisMode) -> str:
        if mode == AnalysisMode.INTRODUCTION:
            return self.introduction_pattern
        return self.credits_pattern


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None


class AnalyzerConfig(BaseModel):
    """Main configuration."""

    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    intro: IntroConfig = Field(default_factory=IntroConfig)
    silence: SilenceConfig = Field(default_factory=SilenceConfig)
    credits: CreditsConfig = Field(default_factory=CreditsConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    chapters: ChapterConfig = Field(default_factory=ChapterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def minimum_duration(self, mode: AnalysisMode) -> float:
        """Shortest contiguous run accepted in *mode*."""
        if mode == AnalysisMode.INTRODUCTION:
            return self.intro.minimum_intro_duration
        return self.credits.minimum_credits_duration

    def maximum_duration(self, mode: AnalysisMode, is_episode: bool = True) -> float:
        """Longest segment accepted in *mode*."""
        if mode == AnalysisMode.INTRODUCTION:
            return self.intro.maximum_intro_duration
        return self.credits.maximum_for(is_episode)


def load_config(config_path: Path | None = None) -> AnalyzerConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        AnalyzerConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    if config_path is None:
        possible_paths = [
            Path.cwd() / "mediasegments.yaml",
            Path.home() / ".config" / "mediasegments" / "config.yaml",
            Path.home() / ".mediasegments" / "config.yaml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            config_path = possible_paths[0]

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return AnalyzerConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    return AnalyzerConfig(**data)
