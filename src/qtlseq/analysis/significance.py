"""P-values, multiple-testing correction and FDR thresholds.

P-values come from the upper tail of the fitted log-normal null;
q-values are Benjamini-Hochberg adjusted p-values.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
from scipy import stats as scipy_stats

from qtlseq.core.models import GPRIME, NEG_LOG10_PVAL, PVALUE
from qtlseq.utils.errors import (
    InvalidConfigurationError,
    InvalidInputError,
    format_invalid_parameter,
    format_missing_columns,
)
from qtlseq.utils.logging import get_logger
from qtlseq.utils.validation import validate_alpha

if TYPE_CHECKING:
    import pandas as pd
    from numpy.typing import ArrayLike

logger = get_logger(__name__)

THRESHOLD_COLUMNS = (GPRIME, NEG_LOG10_PVAL)


def compute_pvalues(gprime: ArrayLike, mu_e: float, var_e: float) -> np.ndarray:
    """Upper-tail p-values of G' under a log-normal null.

    ``p = 1 - CDF(G'; meanlog=mu_e, sdlog=sqrt(var_e))``, computed with
    the survival function so that very small p-values keep precision.

    Args:
        gprime: G' values.
        mu_e: Log-scale location of the null.
        var_e: Log-scale variance of the null.

    Returns:
        P-values in [0, 1].
    """
    if not math.isfinite(mu_e) or not math.isfinite(var_e) or var_e <= 0:
        raise InvalidInputError(
            f"Null distribution parameters must be finite with positive variance "
            f"(muE={mu_e}, varE={var_e})"
        )
    values = np.asarray(gprime, dtype=np.float64)
    pvalues = scipy_stats.lognorm.sf(values, s=math.sqrt(var_e), scale=math.exp(mu_e))
    return np.clip(pvalues, 0.0, 1.0)


def adjust_pvalues(pvalues: ArrayLike) -> np.ndarray:
    """Benjamini-Hochberg adjusted p-values (q-values).

    The result is in the original order; sorted by p-value it is
    non-decreasing.

    Args:
        pvalues: P-values in [0, 1].

    Returns:
        Q-values in [0, 1].
    """
    p = np.asarray(pvalues, dtype=np.float64).ravel()
    if p.size == 0:
        return p
    if not np.isfinite(p).all() or (p < 0).any() or (p > 1).any():
        raise InvalidInputError("P-values must be finite and within [0, 1]")
    return scipy_stats.false_discovery_control(p, method="bh")


def fdr_threshold(pvalues: ArrayLike, alpha: float = 0.01) -> float | None:
    """P-value threshold controlling the FDR at ``alpha``.

    The p-values are sorted and BH-adjusted; the threshold is the
    largest raw p-value whose adjusted value is below ``alpha``.

    Args:
        pvalues: P-values in [0, 1].
        alpha: False discovery rate, in (0, 1).

    Returns:
        The threshold, or None if no p-value qualifies.
    """
    validate_alpha(alpha)
    sorted_p = np.sort(np.asarray(pvalues, dtype=np.float64).ravel())
    adjusted = adjust_pvalues(sorted_p)
    passing = np.flatnonzero(adjusted < alpha)
    if passing.size == 0:
        logger.warning(f"No p-value passes the FDR threshold at alpha={alpha}")
        return None
    return float(sorted_p[passing[-1]])


def fdr_threshold_value(
    snps: pd.DataFrame,
    alpha: float = 0.01,
    column: str = GPRIME,
) -> float | None:
    """FDR threshold expressed on the G' or -log10(p) scale.

    This is the value at which a genome-wide significance line is drawn
    on a G' or -log10(p) track.

    Args:
        snps: Analysed SNP table with ``pvalue`` and ``column``.
        alpha: False discovery rate, in (0, 1).
        column: "Gprime" or "negLog10Pval".

    Returns:
        The lowest value of ``column`` among SNPs at or below the
        p-value threshold, or None if no threshold exists.
    """
    if column not in THRESHOLD_COLUMNS:
        raise InvalidConfigurationError(
            format_invalid_parameter(
                "column", column, f"must be one of {', '.join(THRESHOLD_COLUMNS)}"
            )
        )
    missing = [c for c in (PVALUE, column) if c not in snps.columns]
    if missing:
        raise InvalidInputError(format_missing_columns(missing, list(snps.columns)))

    threshold = fdr_threshold(snps[PVALUE].to_numpy(), alpha)
    if threshold is None:
        return None
    significant = snps.loc[snps[PVALUE] <= threshold, column]
    return float(significant.min())
