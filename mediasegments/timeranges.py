"""Helpers for turning lists of matching timestamps into time ranges."""

from __future__ import annotations

from collections.abc import Sequence

from mediasegments.models import TimeRange


def find_contiguous(times: Sequence[float], maximum_distance: float) -> TimeRange | None:
    """Find the longest contiguous run of timestamps.

    Consecutive (sorted) timestamps belong to the same run while the gap
    between them is at most *maximum_distance*. A run is only closed when a
    larger gap follows it, so callers append ``math.inf`` to make sure the
    final run is considered.

    Args:
        times: Timestamps in seconds, in any order
        maximum_distance: Largest gap allowed inside a run

    Returns:
        The longest closed run (the earliest one on ties), or None when no
        run was closed.
    """
    if not times:
        return None

    ordered = sorted(times)
    best: TimeRange | None = None
    run_start = run_end = ordered[0]

    for current, following in zip(ordered, ordered[1:]):
        if following - current <= maximum_distance:
            run_end = following
            continue

        run = TimeRange(run_start, run_end)
        if best is None or run.duration > best.duration:
            best = run
        run_start = run_end = following

    return best
