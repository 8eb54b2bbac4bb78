"""Statistical calculations for qtlseq.

This module provides the per-SNP G statistic, the tricube kernel used
for smoothing, and the half-sample mode estimator used when fitting
the null distribution of G'.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from qtlseq.utils.errors import (
    EstimationFailureError,
    InvalidConfigurationError,
    InvalidInputError,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike


def calculate_g_statistic(
    low_ref: ArrayLike,
    high_ref: ArrayLike,
    low_alt: ArrayLike,
    high_alt: ArrayLike,
) -> np.ndarray:
    """Calculate the G statistic for each SNP.

    The four allele depths of a SNP form a 2x2 table (allele x bulk).
    Expected counts assume allele and bulk are independent:

        e1 = (LowRef + HighRef) * (LowRef + LowAlt) / N
        e2 = (LowRef + HighRef) * (HighRef + HighAlt) / N
        e3 = (LowRef + LowAlt) * (LowAlt + HighAlt) / N
        e4 = (LowAlt + HighAlt) * (HighRef + HighAlt) / N

    and ``G = 2 * sum(n_i * ln(n_i / e_i))``. Cells with ``n_i = 0``
    contribute 0.

    Args:
        low_ref: Reference allele depth in the low bulk.
        high_ref: Reference allele depth in the high bulk.
        low_alt: Alternate allele depth in the low bulk.
        high_alt: Alternate allele depth in the high bulk.

    Returns:
        Array of G values, one per SNP.

    Raises:
        InvalidInputError: If the inputs differ in length, a depth is
            negative, or the total depth of a SNP is 0.

    Examples:
        >>> float(calculate_g_statistic([10], [10], [10], [10])[0])
        0.0
    """
    try:
        obs = np.column_stack(
            [np.asarray(a, dtype=np.float64).ravel() for a in (low_ref, high_ref, low_alt, high_alt)]
        )
    except ValueError as e:
        raise InvalidInputError(f"Allele depth vectors must have equal length: {e}") from e

    if (obs < 0).any():
        row = int(np.flatnonzero((obs < 0).any(axis=1))[0])
        raise InvalidInputError(f"Negative allele depth for SNP at index {row}: {obs[row].tolist()}")

    total = obs.sum(axis=1)
    if (total == 0).any():
        row = int(np.flatnonzero(total == 0)[0])
        raise InvalidInputError(f"Total allele depth is 0 for SNP at index {row}; G is undefined")

    lr, hr, la, ha = obs.T
    expected = np.column_stack(
        [
            (lr + hr) * (lr + la),
            (lr + hr) * (hr + ha),
            (lr + la) * (la + ha),
            (la + ha) * (hr + ha),
        ]
    ) / total[:, np.newaxis]

    # n_i > 0 implies e_i > 0, so only the zero cells need masking
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.where(obs > 0, obs * np.log(obs / expected), 0.0)

    return 2 * terms.sum(axis=1)


def tricube_weight(distance: ArrayLike, bandwidth: float) -> np.ndarray | float:
    """Calculate tricube kernel weights.

        w(d) = (1 - (|d|/h)^3)^3 for |d| < h
        w(d) = 0 for |d| >= h

    Args:
        distance: Distance(s) from the focal point.
        bandwidth: Kernel bandwidth h.

    Returns:
        Weight(s) in [0, 1]; a float for scalar input.

    Examples:
        >>> tricube_weight(0, 100)
        1.0
        >>> tricube_weight(50, 100)
        0.669921875
    """
    d = np.abs(np.asarray(distance, dtype=np.float64))
    if bandwidth <= 0:
        weights = np.zeros_like(d)
    else:
        u = d / bandwidth
        weights = np.where(u < 1, (1 - u**3) ** 3, 0.0)
    if weights.ndim == 0:
        return float(weights)
    return weights


def half_sample_mode(values: ArrayLike, bandwidth: float = 0.5) -> float:
    """Estimate the mode with the half-sample method.

    The sorted sample is repeatedly narrowed to the run of
    ``ceil(bandwidth * n)`` consecutive values with the smallest range.
    When several runs tie, the run starting at the mean of the tied
    start indices (rounded down) is kept, even if that run is not itself
    one of the narrowest; a zero-width run ends the search at its first
    value. This is the tie rule of modeest::hsm. Once three values
    remain, the mode is the mean of the closer pair (the middle value if
    both gaps are equal); with fewer, it is their mean.

    Args:
        values: Sample values.
        bandwidth: Fraction of the sample kept at each step, in (0, 1).

    Returns:
        Mode estimate.

    Raises:
        InvalidConfigurationError: If bandwidth is not in (0, 1).
        EstimationFailureError: If the sample is empty or contains
            non-finite values, or a step fails to shrink the sample.
    """
    if not 0 < bandwidth < 1:
        raise InvalidConfigurationError(
            f"Half-sample mode bandwidth must be between 0 and 1, got {bandwidth}"
        )

    y = np.sort(np.asarray(values, dtype=np.float64).ravel())
    if y.size == 0:
        raise EstimationFailureError("Cannot estimate the mode of an empty sample")
    if not np.isfinite(y).all():
        raise EstimationFailureError("Cannot estimate the mode of a sample with non-finite values")

    while y.size > 3:
        n = y.size
        k = math.ceil(bandwidth * n)
        if k >= n:
            raise EstimationFailureError(
                f"Half-sample mode did not converge: bandwidth {bandwidth} "
                f"keeps all {n} values"
            )
        widths = y[k - 1 :] - y[: n - k + 1]
        candidates = np.flatnonzero(widths == widths.min())
        start = int(candidates.mean())
        if widths[start] == 0:
            return float(y[start])
        y = y[start : start + k]

    if y.size == 3:
        skew = 2 * y[1] - y[0] - y[2]
        if skew < 0:
            return float(np.mean(y[:2]))
        if skew > 0:
            return float(np.mean(y[1:]))
        return float(y[1])
    return float(np.mean(y))
