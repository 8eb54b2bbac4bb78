"""Output writers for qtlseq."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from qtlseq.utils.logging import get_logger

if TYPE_CHECKING:
    import pandas as pd

logger = get_logger(__name__)


def write_gprime_tsv(snps: pd.DataFrame, path: str | Path) -> int:
    """Write the analysed SNP table to a TSV file.

    Floats are written at full precision.

    Args:
        snps: Augmented SNP table.
        path: Output file path.

    Returns:
        Number of SNPs written.
    """
    path = Path(path)
    logger.info(f"Writing G' results to {path}")
    snps.to_csv(path, sep="\t", index=False)
    logger.info(f"Wrote {len(snps):,} SNPs to {path}")
    return len(snps)
