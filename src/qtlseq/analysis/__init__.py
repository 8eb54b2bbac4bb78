"""Analysis modules for qtlseq."""

from qtlseq.analysis.gprime import (
    GprimeAnalysis,
    calculate_chromosome_stats,
    calculate_significance,
    run_gprime_analysis,
    subset_chromosomes,
)
from qtlseq.analysis.null import (
    delta_snp_filter,
    estimate_null_params,
    hampel_filter,
    trim_outliers,
)
from qtlseq.analysis.significance import (
    adjust_pvalues,
    compute_pvalues,
    fdr_threshold,
    fdr_threshold_value,
)
from qtlseq.analysis.windows import count_snps_in_window, tricube_smooth

__all__ = [
    # Windows
    "count_snps_in_window",
    "tricube_smooth",
    # Null distribution
    "delta_snp_filter",
    "estimate_null_params",
    "hampel_filter",
    "trim_outliers",
    # Significance
    "adjust_pvalues",
    "compute_pvalues",
    "fdr_threshold",
    "fdr_threshold_value",
    # Pipeline
    "GprimeAnalysis",
    "calculate_chromosome_stats",
    "calculate_significance",
    "run_gprime_analysis",
    "subset_chromosomes",
]
