"""Pytest configuration and fixtures for qtlseq tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Depth per bulk used by the engineered SNPs below
BULK_DEPTH = 200

# Skew levels for background SNPs and their share of the background.
# A SNP with skew x has 100 + x alt reads in the high bulk and 100 - x
# in the low bulk, so deltaSNP = x / 100.
BACKGROUND_SKEWS = {3: 0.4, 5: 0.3, 7: 0.2, 9: 0.1}
QTL_SKEW = 45

SNP_SPACING = 10_000
# Smaller than the SNP spacing so G' equals G at every SNP
NARROW_WINDOW = 5_000


def skewed_snp(chrom: str, pos: int, skew: int) -> dict:
    """One SNP record whose alt allele is enriched in the high bulk by ``skew`` reads."""
    half = BULK_DEPTH // 2
    low_alt = half - skew
    high_alt = half + skew
    return {
        "CHROM": chrom,
        "POS": pos,
        "AD_REF.LOW": BULK_DEPTH - low_alt,
        "AD_REF.HIGH": BULK_DEPTH - high_alt,
        "AD_ALT.LOW": low_alt,
        "AD_ALT.HIGH": high_alt,
        "deltaSNP": high_alt / BULK_DEPTH - low_alt / BULK_DEPTH,
    }


def background_skews(n: int, rng: np.random.Generator) -> list[int]:
    """Shuffled background skew levels in the BACKGROUND_SKEWS proportions."""
    skews: list[int] = []
    for skew, share in BACKGROUND_SKEWS.items():
        skews.extend([skew] * round(n * share))
    rng.shuffle(skews)
    return skews


@pytest.fixture
def qtl_snps() -> pd.DataFrame:
    """Two chromosomes of 100 SNPs; ChrA carries a 10-SNP QTL, ChrB is flat.

    The 190 background SNPs have G in four levels (40/30/20/10 %), and
    all have |deltaSNP| < 0.1. The QTL SNPs have deltaSNP = 0.45.
    """
    rng = np.random.default_rng(7)
    records = []

    chr_a = background_skews(90, rng)
    chr_a[45:45] = [QTL_SKEW] * 10
    for i, skew in enumerate(chr_a):
        records.append(skewed_snp("ChrA", (i + 1) * SNP_SPACING, skew))

    for i, skew in enumerate(background_skews(100, rng)):
        records.append(skewed_snp("ChrB", (i + 1) * SNP_SPACING, skew))

    return pd.DataFrame.from_records(records)


@pytest.fixture
def qtl_positions() -> tuple[int, int]:
    """Inclusive POS range of the engineered QTL on ChrA."""
    return 46 * SNP_SPACING, 55 * SNP_SPACING


@pytest.fixture
def random_snps() -> pd.DataFrame:
    """Binomially sampled SNPs on three chromosomes with a QTL on Chr2.

    Chr2 alt allele frequencies rise towards 0.9 (high bulk) and fall
    towards 0.1 (low bulk) around 5 Mb.
    """
    rng = np.random.default_rng(2024)
    frames = []
    for chrom in ("Chr1", "Chr2", "Chr10"):
        pos = np.sort(rng.choice(np.arange(1, 10_000_000), size=400, replace=False))
        dp_low = rng.integers(30, 60, size=pos.size)
        dp_high = rng.integers(30, 60, size=pos.size)
        af_high = np.full(pos.size, 0.5)
        af_low = np.full(pos.size, 0.5)
        if chrom == "Chr2":
            linkage = np.clip(1 - np.abs(pos - 5_000_000) / 2_000_000, 0, 1)
            af_high = 0.5 + 0.4 * linkage
            af_low = 0.5 - 0.4 * linkage
        alt_low = rng.binomial(dp_low, af_low)
        alt_high = rng.binomial(dp_high, af_high)
        frames.append(
            pd.DataFrame(
                {
                    "CHROM": chrom,
                    "POS": pos,
                    "AD_REF.LOW": dp_low - alt_low,
                    "AD_REF.HIGH": dp_high - alt_high,
                    "AD_ALT.LOW": alt_low,
                    "AD_ALT.HIGH": alt_high,
                    "deltaSNP": alt_high / dp_high - alt_low / dp_low,
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def snp_table_path(tmp_path: Path, qtl_snps: pd.DataFrame) -> Path:
    """The engineered QTL SNP table written as TSV."""
    path = tmp_path / "snps.tsv"
    qtl_snps.to_csv(path, sep="\t", index=False)
    return path
