"""I/O utilities for qtlseq."""

from qtlseq.io.readers import read_gprime_results, read_snp_table
from qtlseq.io.summary import AnalysisSummary, ChromosomeSummary, write_summary
from qtlseq.io.writers import write_gprime_tsv

__all__ = [
    "read_snp_table",
    "read_gprime_results",
    "write_gprime_tsv",
    "AnalysisSummary",
    "ChromosomeSummary",
    "write_summary",
]
