"""Per-chromosome window statistics for qtlseq.

This module counts SNPs around each SNP and computes tricube-smoothed
versions of per-SNP statistics. Both functions operate on the SNPs of
a single chromosome; grouping is done by the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from qtlseq.core.stats import tricube_weight
from qtlseq.utils.errors import InvalidInputError
from qtlseq.utils.logging import get_logger
from qtlseq.utils.validation import validate_window_size

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

logger = get_logger(__name__)


def _sorted_positions(positions: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Return (sort order, sorted positions) for one chromosome."""
    pos = np.asarray(positions, dtype=np.float64).ravel()
    if not np.isfinite(pos).all():
        raise InvalidInputError("SNP positions must be finite numbers")
    order = np.argsort(pos, kind="stable")
    return order, pos[order]


def count_snps_in_window(positions: ArrayLike, window_size: float) -> np.ndarray:
    """Count the SNPs within a window centred on each SNP.

    A SNP at ``p`` counts every SNP (itself included) whose position
    lies in ``[p - window_size/2, p + window_size/2]``, both ends
    inclusive.

    Args:
        positions: Positions of the SNPs on one chromosome.
        window_size: Full window width in bp.

    Returns:
        Integer counts in the same order as ``positions``.

    Raises:
        InvalidConfigurationError: If window_size is not positive.

    Examples:
        >>> count_snps_in_window([0, 1, 2, 3], 2).tolist()
        [2, 3, 3, 2]
    """
    validate_window_size(window_size)
    order, pos = _sorted_positions(positions)

    half = window_size / 2
    lo = np.searchsorted(pos, pos - half, side="left")
    hi = np.searchsorted(pos, pos + half, side="right")

    counts = np.empty(pos.size, dtype=np.int64)
    counts[order] = hi - lo
    return counts


def tricube_smooth(
    positions: ArrayLike,
    values: ArrayLike,
    window_size: float,
) -> np.ndarray:
    """Tricube-weighted local average of a statistic along a chromosome.

    This is a degree-0 local regression evaluated at every SNP: each
    neighbour within ``window_size`` bp contributes with weight
    ``(1 - (d/window_size)^3)^3``. The focal SNP always has weight 1,
    so the weighted average is always defined.

    Args:
        positions: Positions of the SNPs on one chromosome.
        values: Statistic to smooth (delta SNP index, G, ...).
        window_size: Kernel bandwidth in bp.

    Returns:
        Smoothed values in the same order as ``positions``.

    Raises:
        InvalidConfigurationError: If window_size is not positive.
        InvalidInputError: If positions and values differ in length.
    """
    validate_window_size(window_size)
    order, pos = _sorted_positions(positions)
    stat = np.asarray(values, dtype=np.float64).ravel()
    if stat.size != pos.size:
        raise InvalidInputError(
            f"Positions and values must have equal length ({pos.size} != {stat.size})"
        )
    stat = stat[order]

    # Neighbours strictly inside the bandwidth; the rest have zero weight
    lo = np.searchsorted(pos, pos - window_size, side="right")
    hi = np.searchsorted(pos, pos + window_size, side="left")

    smoothed_sorted = np.empty(pos.size, dtype=np.float64)
    for i in range(pos.size):
        weights = tricube_weight(pos[lo[i] : hi[i]] - pos[i], window_size)
        smoothed_sorted[i] = np.dot(weights, stat[lo[i] : hi[i]]) / weights.sum()

    smoothed = np.empty_like(smoothed_sorted)
    smoothed[order] = smoothed_sorted
    return smoothed
