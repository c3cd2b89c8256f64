"""Read raw Chromaprint fingerprints from text.

Accepts the output of ``fpcalc -raw`` (``DURATION=...`` / ``FINGERPRINT=...``
lines, signed or unsigned) as well as a bare list of integers.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path

import numpy as np

from mediasegments.models import AnalysisMode, FingerprintResult, QueuedMedia

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[,\s]+")


class RawFingerprintError(ValueError):
    """Raised when fingerprint text cannot be parsed."""
    pass


def parse_raw_fingerprint(text: str) -> np.ndarray:
    """Parse raw fingerprint text into a uint32 array.

    Raises:
        RawFingerprintError: If no fingerprint is found or a value is not an
            integer in the 32-bit range
    """
    body = None
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key.upper() == "FINGERPRINT":
            body = value
            break

    if body is None:
        if "=" in text:
            raise RawFingerprintError("No FINGERPRINT= line found")
        body = text

    tokens = [token for token in _SEPARATORS.split(body.strip()) if token]
    try:
        values = [int(token) for token in tokens]
    except ValueError as e:
        raise RawFingerprintError(f"Invalid fingerprint value: {e}") from e

    for value in values:
        if not -(2**31) <= value < 2**32:
            raise RawFingerprintError(f"Fingerprint value out of 32-bit range: {value}")

    # fpcalc -signed prints int32; reinterpret as uint32
    return np.array(values, dtype=np.int64).astype(np.uint32)


def load_raw_fingerprint(path: str | Path) -> np.ndarray:
    """Read and parse a fingerprint file."""
    return parse_raw_fingerprint(Path(path).read_text())


class FileFingerprintProvider:
    """Fingerprint provider backed by files on disk.

    Args:
        paths: ``{item_id: {mode: path}}`` mapping
    """

    def __init__(self, paths: Mapping[str, Mapping[AnalysisMode, str | Path]]):
        self.paths = paths

    def fingerprint(self, item: QueuedMedia, mode: AnalysisMode) -> FingerprintResult:
        path = self.paths.get(item.item_id, {}).get(mode)
        if path is None:
            return FingerprintResult.failed(f"no {mode.value} fingerprint file for {item.item_id}")

        try:
            points = load_raw_fingerprint(path)
        except (OSError, RawFingerprintError) as e:
            logger.debug("Cannot load fingerprint %s: %s", path, e)
            return FingerprintResult.failed(str(e))

        return FingerprintResult.success(points)
