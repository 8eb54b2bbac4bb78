"""Non-parametric estimation of the null distribution of G'.

G' is assumed to be log-normal away from QTL. Putative QTL are trimmed
first, either by their delta SNP index or by a one-sided Hampel rule on
ln(G'). The log-normal parameters are then inferred from the median and
the half-sample mode of the remaining values (Magwene et al. 2011).
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from qtlseq.core.models import NullDistribution, OutlierFilter
from qtlseq.core.stats import half_sample_mode
from qtlseq.utils.errors import EstimationFailureError, InvalidInputError
from qtlseq.utils.logging import get_logger
from qtlseq.utils.validation import (
    validate_filter_threshold,
    validate_mode_bandwidth,
    validate_outlier_filter,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

logger = get_logger(__name__)

# Hampel cut-off in units of the left MAD of ln(G')
HAMPEL_CUTOFF = 5.2


def _check_gprime(gprime: ArrayLike) -> np.ndarray:
    """Return G' as a float array, rejecting values without a logarithm."""
    values = np.asarray(gprime, dtype=np.float64).ravel()
    if values.size == 0:
        raise InvalidInputError("No G' values supplied")
    bad = ~np.isfinite(values) | (values <= 0)
    if bad.any():
        idx = int(np.flatnonzero(bad)[0])
        raise InvalidInputError(
            f"G' must be positive and finite to take its logarithm; "
            f"found {values[idx]} at index {idx}"
        )
    return values


def hampel_filter(gprime: ArrayLike) -> np.ndarray:
    """Mask of G' values kept by the one-sided Hampel rule.

    With ``L = ln(G')``, the deviation scale is the median distance
    below the median, using only values at or below the median, since
    QTL only inflate G' upwards. Values with
    ``L - median(L) <= 5.2 * MAD`` are kept.

    Args:
        gprime: Positive G' values.

    Returns:
        Boolean mask, True for values kept in the null set.
    """
    log_gprime = np.log(_check_gprime(gprime))
    median_log = np.median(log_gprime)
    left_mad = np.median(median_log - log_gprime[log_gprime <= median_log])
    return log_gprime - median_log <= HAMPEL_CUTOFF * left_mad


def delta_snp_filter(delta_snp: ArrayLike, filter_threshold: float) -> np.ndarray:
    """Mask of SNPs with ``|deltaSNP| < |filter_threshold|``.

    Raises:
        InvalidConfigurationError: If ``|filter_threshold| >= 0.5``.
    """
    validate_filter_threshold(filter_threshold)
    delta = np.asarray(delta_snp, dtype=np.float64).ravel()
    return np.abs(delta) < abs(filter_threshold)


def trim_outliers(
    gprime: ArrayLike,
    delta_snp: ArrayLike | None = None,
    outlier_filter: OutlierFilter | str = OutlierFilter.DELTA_SNP,
    filter_threshold: float = 0.1,
) -> np.ndarray:
    """Remove putative QTL from a set of G' values.

    Args:
        gprime: G' values, genome-wide.
        delta_snp: Delta SNP index per SNP (deltaSNP filter only).
        outlier_filter: "deltaSNP" or "Hampel".
        filter_threshold: Absolute delta SNP cut-off (deltaSNP filter only).

    Returns:
        The G' values retained for estimating the null.

    Raises:
        InvalidConfigurationError: For an unknown filter or bad threshold.
        InvalidInputError: If deltaSNP values are missing or misaligned.
    """
    method = validate_outlier_filter(outlier_filter)
    values = _check_gprime(gprime)

    if method is OutlierFilter.DELTA_SNP:
        validate_filter_threshold(filter_threshold)
        if delta_snp is None:
            raise InvalidInputError("deltaSNP values are required for the deltaSNP outlier filter")
        delta = np.asarray(delta_snp, dtype=np.float64).ravel()
        if delta.size != values.size:
            raise InvalidInputError(
                f"G' and deltaSNP must have equal length ({values.size} != {delta.size})"
            )
        logger.info(
            f"Using deltaSNP-index to filter outlier regions with a threshold of {filter_threshold}"
        )
        keep = delta_snp_filter(delta, filter_threshold)
    else:
        logger.info("Using Hampel's rule to filter outlier regions")
        keep = hampel_filter(values)

    return values[keep]


def estimate_null_params(
    gprime: ArrayLike,
    delta_snp: ArrayLike | None = None,
    outlier_filter: OutlierFilter | str = OutlierFilter.DELTA_SNP,
    filter_threshold: float = 0.1,
    mode_bandwidth: float = 0.5,
) -> NullDistribution:
    """Estimate the log-normal null distribution of G'.

    After trimming, ``muE = ln(median)`` and
    ``varE = |muE - ln(mode)|`` where the mode is the half-sample mode
    of the trimmed G' values. This uses the median-mode gap of a
    log-normal rather than a maximum-likelihood fit.

    Args:
        gprime: G' values, genome-wide.
        delta_snp: Delta SNP index per SNP (deltaSNP filter only).
        outlier_filter: "deltaSNP" or "Hampel".
        filter_threshold: Absolute delta SNP cut-off (deltaSNP filter only).
        mode_bandwidth: Half-sample mode fraction, in (0, 1).

    Returns:
        Fitted :class:`NullDistribution`.

    Raises:
        InvalidConfigurationError: For invalid parameters.
        InvalidInputError: For non-positive G' or missing deltaSNP values.
        EstimationFailureError: If trimming removes every SNP or the
            null has zero variance.
    """
    method = validate_outlier_filter(outlier_filter)
    if method is OutlierFilter.DELTA_SNP:
        validate_filter_threshold(filter_threshold)
    validate_mode_bandwidth(mode_bandwidth)

    values = _check_gprime(gprime)
    trimmed = trim_outliers(values, delta_snp, method, filter_threshold)
    if trimmed.size == 0:
        raise EstimationFailureError(
            f"No SNPs left after {method.value} outlier filtering; "
            "cannot estimate the null distribution of G'",
            suggestion="Increase the delta SNP filter threshold or use the Hampel filter.",
        )
    logger.debug(f"Kept {trimmed.size:,} of {values.size:,} SNPs for the null distribution")

    median_trim = float(np.median(trimmed))
    logger.info("Estimating the mode of the trimmed G' set using the half-sample method...")
    mode_trim = half_sample_mode(trimmed, bandwidth=mode_bandwidth)

    mu_e = math.log(median_trim)
    var_e = abs(mu_e - math.log(mode_trim))
    if var_e == 0:
        raise EstimationFailureError(
            f"Median and mode of the trimmed G' set are equal ({median_trim:.6g}); "
            "the null distribution has zero variance"
        )

    null = NullDistribution(
        mu_e=mu_e,
        var_e=var_e,
        median_trimmed=median_trim,
        mode_trimmed=mode_trim,
        n_trimmed=int(trimmed.size),
        n_total=int(values.size),
        outlier_filter=method,
    )
    logger.debug(f"Estimated {null!r}")
    return null
