"""Data models for qtlseq.

This module defines the SNP table column names, the analysis
parameters and the fitted null distribution of G'.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np
from scipy import stats as scipy_stats

# Input columns of the SNP table
CHROM = "CHROM"
POS = "POS"
AD_REF_LOW = "AD_REF.LOW"
AD_REF_HIGH = "AD_REF.HIGH"
AD_ALT_LOW = "AD_ALT.LOW"
AD_ALT_HIGH = "AD_ALT.HIGH"
DELTA_SNP = "deltaSNP"

REQUIRED_COLUMNS = (CHROM, POS, AD_REF_LOW, AD_REF_HIGH, AD_ALT_LOW, AD_ALT_HIGH, DELTA_SNP)
DEPTH_COLUMNS = (AD_REF_LOW, AD_REF_HIGH, AD_ALT_LOW, AD_ALT_HIGH)

# Columns added by the analysis
N_SNPS = "nSNPs"
TRICUBE_DELTA_SNP = "tricubeDeltaSNP"
G = "G"
GPRIME = "Gprime"
PVALUE = "pvalue"
NEG_LOG10_PVAL = "negLog10Pval"
QVALUE = "qvalue"

CHROMOSOME_COLUMNS = (N_SNPS, TRICUBE_DELTA_SNP, G, GPRIME)


class OutlierFilter(str, Enum):
    """Method used to trim putative QTL before estimating the null."""

    DELTA_SNP = "deltaSNP"  # |deltaSNP| < filter_threshold
    HAMPEL = "Hampel"  # one-sided Hampel rule on ln(G')


@dataclass
class GprimeParameters:
    """Parameters of a G' analysis.

    Attributes:
        window_size: Smoothing window in bp. SNP counts use
            ``window_size / 2`` on either side; the tricube kernel uses
            ``window_size`` as its bandwidth.
        outlier_filter: Method for trimming QTL regions before the null
            distribution is estimated.
        filter_threshold: Absolute delta SNP index above which SNPs are
            excluded from the null. Only used with the deltaSNP filter.
        mode_bandwidth: Fraction of the sample kept at each step of the
            half-sample mode estimator.
    """

    window_size: float = 1e6
    outlier_filter: OutlierFilter | str = OutlierFilter.DELTA_SNP
    filter_threshold: float = 0.1
    mode_bandwidth: float = 0.5

    def validate(self) -> GprimeParameters:
        """Check all parameters.

        The instance itself is left unchanged.

        Returns:
            A validated copy with ``outlier_filter`` as an
            :class:`OutlierFilter`.

        Raises:
            InvalidConfigurationError: If any parameter is invalid.
        """
        from qtlseq.utils.validation import validate_parameters

        method = validate_parameters(
            window_size=self.window_size,
            outlier_filter=self.outlier_filter,
            filter_threshold=self.filter_threshold,
            mode_bandwidth=self.mode_bandwidth,
        )
        return replace(self, outlier_filter=method)


@dataclass
class NullDistribution:
    """Log-normal null distribution of G' estimated from trimmed data.

    Attributes:
        mu_e: Log-scale location, ln(median of the trimmed G').
        var_e: Log-scale variance, |mu_e - ln(mode of the trimmed G')|.
        median_trimmed: Median of the trimmed G' values.
        mode_trimmed: Half-sample mode of the trimmed G' values.
        n_trimmed: Number of SNPs kept after outlier trimming.
        n_total: Number of SNPs before trimming.
        outlier_filter: Trimming method used.
    """

    mu_e: float
    var_e: float
    median_trimmed: float
    mode_trimmed: float
    n_trimmed: int
    n_total: int
    outlier_filter: OutlierFilter

    @property
    def sdlog(self) -> float:
        """Standard deviation on the log scale."""
        return math.sqrt(self.var_e)

    def pdf(self, gprime: np.ndarray | float) -> np.ndarray:
        """Density of the null, e.g. for overlaying on a G' histogram."""
        return scipy_stats.lognorm.pdf(gprime, s=self.sdlog, scale=math.exp(self.mu_e))

    def __repr__(self) -> str:
        """Return string representation of the null distribution."""
        return (
            f"NullDistribution(muE={self.mu_e:.4f}, varE={self.var_e:.4f}, "
            f"trimmed={self.n_trimmed}/{self.n_total}, "
            f"filter={self.outlier_filter.value})"
        )
