"""
qtlseq: QTL detection from bulk segregant sequencing with the G' statistic.

This package computes per-SNP G statistics from allele depths, smooths
them along each chromosome into G', and estimates significance from a
non-parametric log-normal null distribution.
"""

__version__ = "0.1.0"
__author__ = "qtlseq Authors"

from qtlseq.analysis.gprime import GprimeAnalysis, run_gprime_analysis
from qtlseq.analysis.significance import fdr_threshold
from qtlseq.core.models import GprimeParameters, NullDistribution, OutlierFilter

__all__ = [
    "GprimeAnalysis",
    "GprimeParameters",
    "NullDistribution",
    "OutlierFilter",
    "fdr_threshold",
    "run_gprime_analysis",
    "__version__",
]
