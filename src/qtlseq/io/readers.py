"""TSV readers for qtlseq.

The SNP table is expected to have been produced and filtered upstream
(for example exported from a GATK VariantsToTable run).
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from qtlseq.core.models import (
    CHROM,
    GPRIME,
    NEG_LOG10_PVAL,
    PVALUE,
    QVALUE,
    REQUIRED_COLUMNS,
)
from qtlseq.utils.errors import InvalidInputError, format_missing_columns
from qtlseq.utils.logging import get_logger

logger = get_logger(__name__)

RESULT_COLUMNS = (GPRIME, PVALUE, NEG_LOG10_PVAL, QVALUE)


def _read_tsv(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")
    try:
        return pd.read_csv(path, sep="\t", dtype={CHROM: str})
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InvalidInputError(f"Could not parse {path} as a tab-separated table: {e}") from e


def read_snp_table(path: str | Path) -> pd.DataFrame:
    """Read a tab-separated SNP table.

    CHROM is always read as a string so labels like ``01`` keep their
    leading zeros.

    Args:
        path: Path to the TSV file.

    Returns:
        SNP table.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidInputError: If the file is malformed or required columns
            are missing.
    """
    path = Path(path)
    logger.info(f"Reading SNP table from {path}")

    snps = _read_tsv(path)

    missing = [col for col in REQUIRED_COLUMNS if col not in snps.columns]
    if missing:
        raise InvalidInputError(format_missing_columns(missing, list(snps.columns)))

    logger.info(f"Read {len(snps):,} SNPs on {snps[CHROM].nunique()} chromosome(s)")
    return snps


def read_gprime_results(path: str | Path) -> pd.DataFrame:
    """Read a G' results table written by :func:`write_gprime_tsv`.

    Args:
        path: Path to the ``*_gprime.tsv`` file.

    Returns:
        Results table.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidInputError: If the file is malformed, lacks the G' and
            significance columns, or has non-numeric values in them.
    """
    path = Path(path)
    logger.info(f"Reading G' results from {path}")

    results = _read_tsv(path)

    missing = [col for col in (CHROM, *RESULT_COLUMNS) if col not in results.columns]
    if missing:
        raise InvalidInputError(
            format_missing_columns(missing, list(results.columns), table="G' results table"),
            suggestion="Run 'qtlseq run' first to produce a G' results table.",
        )

    for col in RESULT_COLUMNS:
        dtype = results[col].dtype
        if not pd.api.types.is_numeric_dtype(dtype) or pd.api.types.is_bool_dtype(dtype):
            raise InvalidInputError(f"Column {col} must be numeric, found dtype {dtype}")

    return results
