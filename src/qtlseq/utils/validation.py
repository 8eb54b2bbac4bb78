"""Input validation utilities for qtlseq.

Configuration is validated before any data is touched; the SNP table is
validated before the per-chromosome phase starts. Nothing is repaired
or dropped here: malformed rows must be removed by the caller.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from qtlseq.core.models import (
    CHROM,
    DELTA_SNP,
    DEPTH_COLUMNS,
    POS,
    REQUIRED_COLUMNS,
    OutlierFilter,
)
from qtlseq.utils.errors import (
    InvalidConfigurationError,
    InvalidInputError,
    format_invalid_parameter,
    format_missing_columns,
)
from qtlseq.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)


def validate_window_size(window_size: float) -> None:
    """Raise if the smoothing window is not a positive finite number."""
    if not isinstance(window_size, (int, float, np.number)) or isinstance(window_size, bool):
        raise InvalidConfigurationError(
            format_invalid_parameter("window_size", window_size, "must be a number")
        )
    if not math.isfinite(window_size) or window_size <= 0:
        raise InvalidConfigurationError(
            format_invalid_parameter("window_size", window_size, "must be positive"),
            suggestion="Windows of 1-2 Mb are typical for G' analysis.",
        )


def validate_outlier_filter(outlier_filter: OutlierFilter | str) -> OutlierFilter:
    """Coerce an outlier filter name to :class:`OutlierFilter`.

    Raises:
        InvalidConfigurationError: If the name is not recognized.
    """
    try:
        return OutlierFilter(outlier_filter)
    except ValueError:
        choices = ", ".join(f'"{f.value}"' for f in OutlierFilter)
        raise InvalidConfigurationError(
            format_invalid_parameter(
                "outlier_filter", outlier_filter, f"must be one of {choices}"
            )
        ) from None


def validate_filter_threshold(filter_threshold: float) -> None:
    """Raise unless ``|filter_threshold| < 0.5``."""
    if filter_threshold is None or not math.isfinite(filter_threshold):
        raise InvalidConfigurationError(
            format_invalid_parameter("filter_threshold", filter_threshold, "must be a number")
        )
    if abs(filter_threshold) >= 0.5:
        raise InvalidConfigurationError(
            format_invalid_parameter(
                "filter_threshold",
                filter_threshold,
                "absolute value must be less than 0.5",
            ),
            suggestion="The default delta SNP threshold is 0.1.",
        )


def validate_mode_bandwidth(mode_bandwidth: float) -> None:
    """Raise unless the half-sample fraction lies in (0, 1)."""
    if not 0 < mode_bandwidth < 1:
        raise InvalidConfigurationError(
            format_invalid_parameter(
                "mode_bandwidth", mode_bandwidth, "must be between 0 and 1 (exclusive)"
            )
        )


def validate_alpha(alpha: float) -> None:
    """Raise unless the FDR level lies in (0, 1)."""
    if not 0 < alpha < 1:
        raise InvalidConfigurationError(
            format_invalid_parameter("alpha", alpha, "must be between 0 and 1 (exclusive)")
        )


def validate_parameters(
    window_size: float,
    outlier_filter: OutlierFilter | str,
    filter_threshold: float,
    mode_bandwidth: float,
) -> OutlierFilter:
    """Validate G' analysis parameters.

    Checks:
    - window_size > 0
    - outlier_filter is "deltaSNP" or "Hampel"
    - |filter_threshold| < 0.5 (deltaSNP filter only)
    - 0 < mode_bandwidth < 1

    Returns:
        The outlier filter as an :class:`OutlierFilter`.

    Raises:
        InvalidConfigurationError: If any parameter is invalid.
    """
    validate_window_size(window_size)
    method = validate_outlier_filter(outlier_filter)
    if method is OutlierFilter.DELTA_SNP:
        validate_filter_threshold(filter_threshold)
    validate_mode_bandwidth(mode_bandwidth)
    return method


def validate_snp_table(snps: pd.DataFrame) -> None:
    """Validate a SNP table before analysis.

    Checks:
    - All required columns are present
    - POS, allele depths and deltaSNP are numeric with no missing values
    - Allele depths are non-negative and sum to more than zero per SNP
    - (CHROM, POS) pairs are unique

    Args:
        snps: SNP table.

    Raises:
        InvalidInputError: Naming the offending column or SNP.
    """
    if not isinstance(snps, pd.DataFrame):
        raise InvalidInputError(
            f"SNP set must be a pandas DataFrame, got {type(snps).__name__}"
        )

    missing = [col for col in REQUIRED_COLUMNS if col not in snps.columns]
    if missing:
        raise InvalidInputError(format_missing_columns(missing, list(snps.columns)))

    if snps.empty:
        raise InvalidInputError("SNP table contains no rows")

    if snps[CHROM].isna().any():
        raise InvalidInputError(f"Column {CHROM} contains missing chromosome labels")

    for col in (POS, *DEPTH_COLUMNS, DELTA_SNP):
        if not pd.api.types.is_numeric_dtype(snps[col]) or pd.api.types.is_bool_dtype(snps[col]):
            raise InvalidInputError(
                f"Column {col} must be numeric, found dtype {snps[col].dtype}"
            )
        values = snps[col].to_numpy(dtype=np.float64)
        if not np.isfinite(values).all():
            row = int(np.flatnonzero(~np.isfinite(values))[0])
            raise InvalidInputError(
                f"Column {col} has a missing or non-finite value at {_describe_row(snps, row)}"
            )

    depths = snps[list(DEPTH_COLUMNS)].to_numpy(dtype=np.float64)
    negative = (depths < 0).any(axis=1)
    if negative.any():
        row = int(np.flatnonzero(negative)[0])
        raise InvalidInputError(
            f"Negative allele depth at {_describe_row(snps, row)}"
        )
    empty = depths.sum(axis=1) == 0
    if empty.any():
        row = int(np.flatnonzero(empty)[0])
        raise InvalidInputError(
            f"Total allele depth is 0 at {_describe_row(snps, row)}; G is undefined",
            suggestion="Filter out SNPs without read support before running the analysis.",
        )

    duplicated = snps.duplicated(subset=[CHROM, POS])
    if duplicated.any():
        row = int(np.flatnonzero(duplicated.to_numpy())[0])
        raise InvalidInputError(f"Duplicate SNP position at {_describe_row(snps, row)}")

    logger.debug(
        f"Validated SNP table: {len(snps):,} SNPs on {snps[CHROM].nunique()} chromosomes"
    )


def validate_chromosome_subset(snps: pd.DataFrame, chromosomes: Iterable[str]) -> list[str]:
    """Check that every requested chromosome occurs in the table.

    Args:
        snps: SNP table.
        chromosomes: Requested chromosome labels.

    Returns:
        The requested labels as a list.

    Raises:
        InvalidInputError: Listing the labels not present in the table.
    """
    requested = list(chromosomes)
    available = set(snps[CHROM].unique())
    unknown = [c for c in requested if c not in available]
    if unknown:
        raise InvalidInputError(
            f"The following are not true chromosome names: {', '.join(map(str, unknown))}"
        )
    return requested


def _describe_row(snps: pd.DataFrame, row: int) -> str:
    """Describe a row by CHROM:POS for error messages."""
    record = snps.iloc[row]
    return f"{record[CHROM]}:{record[POS]} (row {row})"
