"""G' analysis pipeline.

The analysis runs in two phases. The per-chromosome phase computes SNP
counts, the smoothed delta SNP index, G and G' for each chromosome on
its own. The genome-wide phase fits the null distribution of G' over
all SNPs and derives p-values and q-values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from qtlseq.analysis.null import estimate_null_params
from qtlseq.analysis.significance import adjust_pvalues, compute_pvalues, fdr_threshold
from qtlseq.analysis.windows import count_snps_in_window, tricube_smooth
from qtlseq.core.models import (
    AD_ALT_HIGH,
    AD_ALT_LOW,
    AD_REF_HIGH,
    AD_REF_LOW,
    CHROM,
    CHROMOSOME_COLUMNS,
    DELTA_SNP,
    G,
    GPRIME,
    N_SNPS,
    NEG_LOG10_PVAL,
    POS,
    PVALUE,
    QVALUE,
    TRICUBE_DELTA_SNP,
    GprimeParameters,
    NullDistribution,
    OutlierFilter,
)
from qtlseq.core.stats import calculate_g_statistic
from qtlseq.utils.logging import get_logger, track_progress
from qtlseq.utils.validation import validate_chromosome_subset, validate_snp_table

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)


def _analyze_chromosome(snps: pd.DataFrame, window_size: float) -> pd.DataFrame:
    """Per-SNP window statistics for one chromosome, sorted by POS."""
    chrom = snps.sort_values(POS, kind="stable")
    positions = chrom[POS].to_numpy(dtype=np.float64)

    g = calculate_g_statistic(
        low_ref=chrom[AD_REF_LOW].to_numpy(),
        high_ref=chrom[AD_REF_HIGH].to_numpy(),
        low_alt=chrom[AD_ALT_LOW].to_numpy(),
        high_alt=chrom[AD_ALT_HIGH].to_numpy(),
    )

    return pd.DataFrame(
        {
            N_SNPS: count_snps_in_window(positions, window_size),
            TRICUBE_DELTA_SNP: tricube_smooth(positions, chrom[DELTA_SNP].to_numpy(), window_size),
            G: g,
            GPRIME: tricube_smooth(positions, g, window_size),
        },
        index=chrom.index,
    )


def calculate_chromosome_stats(snps: pd.DataFrame, window_size: float) -> pd.DataFrame:
    """Per-chromosome phase: nSNPs, tricubeDeltaSNP, G and Gprime.

    Each chromosome is processed independently, so windows never span
    two chromosomes. Results are merged back into the input row order.

    Args:
        snps: Validated SNP table.
        window_size: Smoothing window in bp.

    Returns:
        A copy of ``snps`` with the four per-chromosome columns added.
    """
    table = snps.reset_index(drop=True)
    groups = table.groupby(CHROM, sort=False)

    logger.info(
        f"Counting SNPs in each window and calculating G, G' and tricube smoothed "
        f"delta SNP index on {groups.ngroups} chromosome(s)..."
    )

    parts = []
    for chrom, chrom_snps in track_progress(
        groups, total=groups.ngroups, description="Smoothing chromosomes"
    ):
        logger.debug(f"Processing chromosome {chrom}: {len(chrom_snps):,} SNPs")
        parts.append(_analyze_chromosome(chrom_snps, window_size))

    stats = pd.concat(parts).sort_index()
    result = table.drop(columns=[c for c in CHROMOSOME_COLUMNS if c in table.columns])
    result = pd.concat([result, stats], axis=1)
    result.index = snps.index
    return result


def calculate_significance(
    snps: pd.DataFrame,
    outlier_filter: OutlierFilter | str = OutlierFilter.DELTA_SNP,
    filter_threshold: float = 0.1,
    mode_bandwidth: float = 0.5,
) -> tuple[pd.DataFrame, NullDistribution]:
    """Genome-wide phase: null distribution, p-values and q-values.

    Args:
        snps: SNP table with Gprime and deltaSNP columns.
        outlier_filter: "deltaSNP" or "Hampel".
        filter_threshold: Absolute delta SNP cut-off (deltaSNP filter only).
        mode_bandwidth: Half-sample mode fraction.

    Returns:
        Tuple of (copy of ``snps`` with pvalue, negLog10Pval and qvalue
        added, fitted null distribution).
    """
    null = estimate_null_params(
        gprime=snps[GPRIME].to_numpy(),
        delta_snp=snps[DELTA_SNP].to_numpy(),
        outlier_filter=outlier_filter,
        filter_threshold=filter_threshold,
        mode_bandwidth=mode_bandwidth,
    )

    logger.info("Calculating p-values...")
    pvalues = compute_pvalues(snps[GPRIME].to_numpy(), null.mu_e, null.var_e)

    result = snps.copy()
    result[PVALUE] = pvalues
    with np.errstate(divide="ignore"):
        result[NEG_LOG10_PVAL] = -np.log10(pvalues)
    result[QVALUE] = adjust_pvalues(pvalues)
    return result, null


class GprimeAnalysis:
    """G' QTL analysis of a SNP table.

    Example:
        >>> analysis = GprimeAnalysis(GprimeParameters(window_size=2e6))
        >>> results = analysis.run(snps)
        >>> analysis.fdr_threshold(alpha=0.01)
    """

    def __init__(self, params: GprimeParameters | None = None):
        self.params = params if params is not None else GprimeParameters()
        self.null_distribution: NullDistribution | None = None
        self.results: pd.DataFrame | None = None

    def run(self, snps: pd.DataFrame) -> pd.DataFrame:
        """Run both phases and return the augmented SNP table.

        Configuration is validated before the data, so a bad parameter
        is reported even when the table is also invalid.

        Raises:
            InvalidConfigurationError: For invalid parameters.
            InvalidInputError: For a malformed SNP table or G' <= 0.
            EstimationFailureError: If the null cannot be estimated.
        """
        params = self.params.validate()
        validate_snp_table(snps)

        logger.info(
            f"Starting G' analysis of {len(snps):,} SNPs: "
            f"window={params.window_size:,.0f} bp, filter={params.outlier_filter.value}"
        )

        table = calculate_chromosome_stats(snps, params.window_size)
        results, null = calculate_significance(
            table,
            outlier_filter=params.outlier_filter,
            filter_threshold=params.filter_threshold,
            mode_bandwidth=params.mode_bandwidth,
        )

        self.null_distribution = null
        self.results = results
        return results

    def fdr_threshold(self, alpha: float = 0.01) -> float | None:
        """P-value threshold at FDR ``alpha`` for the last run."""
        if self.results is None:
            raise RuntimeError("GprimeAnalysis.run() must be called before fdr_threshold()")
        return fdr_threshold(self.results[PVALUE].to_numpy(), alpha)


def run_gprime_analysis(
    snps: pd.DataFrame,
    window_size: float = 1e6,
    outlier_filter: OutlierFilter | str = OutlierFilter.DELTA_SNP,
    filter_threshold: float = 0.1,
    mode_bandwidth: float = 0.5,
) -> pd.DataFrame:
    """Run a G' analysis and return the augmented SNP table.

    Adds the columns nSNPs, tricubeDeltaSNP, G, Gprime, pvalue,
    negLog10Pval and qvalue. The input table is not modified.

    Args:
        snps: SNP table with CHROM, POS, AD_REF.LOW, AD_REF.HIGH,
            AD_ALT.LOW, AD_ALT.HIGH and deltaSNP columns.
        window_size: Smoothing window in bp (default: 1 Mb).
        outlier_filter: "deltaSNP" (default) or "Hampel".
        filter_threshold: Absolute delta SNP cut-off (default: 0.1).
        mode_bandwidth: Half-sample mode fraction (default: 0.5).

    Returns:
        Augmented SNP table.
    """
    params = GprimeParameters(
        window_size=window_size,
        outlier_filter=outlier_filter,
        filter_threshold=filter_threshold,
        mode_bandwidth=mode_bandwidth,
    )
    return GprimeAnalysis(params).run(snps)


def subset_chromosomes(snps: pd.DataFrame, chromosomes: Iterable[str]) -> pd.DataFrame:
    """Rows of the given chromosomes.

    Raises:
        InvalidInputError: If a chromosome is not in the table.
    """
    requested = validate_chromosome_subset(snps, chromosomes)
    return snps[snps[CHROM].isin(requested)]
