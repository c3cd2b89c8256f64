"""Bit-level similarity between fingerprint points."""

from __future__ import annotations

import numpy as np

UINT32_MASK = 0xFFFFFFFF


def count_bits(number: int) -> int:
    """Count the number of bits that are set in a 32-bit value."""
    return (int(number) & UINT32_MASK).bit_count()


def count_bits_array(values: np.ndarray) -> np.ndarray:
    """Vectorized :func:`count_bits` over a uint32 array."""
    as_bytes = np.ascontiguousarray(values, dtype=np.uint32).view(np.uint8).reshape(-1, 4)
    return np.unpackbits(as_bytes, axis=1).sum(axis=1)


def points_match(lhs: int, rhs: int, maximum_differences: int) -> bool:
    """Two points match when they differ in at most *maximum_differences* bits."""
    return count_bits(lhs ^ rhs) <= maximum_differences


def matching_mask(lhs: np.ndarray, rhs: np.ndarray, maximum_differences: int) -> np.ndarray:
    """Element-wise :func:`points_match` for two equally long arrays."""
    diff = np.bitwise_xor(
        np.asarray(lhs, dtype=np.uint32), np.asarray(rhs, dtype=np.uint32)
    )
    return count_bits_array(diff) <= maximum_differences
