"""mediasegments - Introduction and end credits detection for episodic media.

Finds the segments a media server offers to skip:

- Introductions and credits shared between episodes, by aligning
  Chromaprint audio fingerprints across files
- End credits that start on a black background, by bisecting the tail of a
  file for black frames
- Chapters whose names mark an intro or credits

Decoding media is left to the host: fingerprints, black frames, silence and
chapters are supplied through the protocols in ``mediasegments.protocols``.
"""

__version__ = "0.1.0"

from .aligner import SegmentAligner
from .blackframe import BlackFrameAnalyzer, UnsupportedAnalysisModeError
from .chapters import ChapterAnalyzer
from .config import AnalyzerConfig, load_config
from .matcher import FingerprintMatcher
from .models import AnalysisMode, AnalysisResult, QueuedMedia, Segment, TimeRange
from .pipeline import AnalyzerChain

__all__ = [
    "AnalysisMode",
    "AnalysisResult",
    "AnalyzerChain",
    "AnalyzerConfig",
    "BlackFrameAnalyzer",
    "ChapterAnalyzer",
    "FingerprintMatcher",
    "QueuedMedia",
    "Segment",
    "SegmentAligner",
    "TimeRange",
    "UnsupportedAnalysisModeError",
    "load_config",
]
