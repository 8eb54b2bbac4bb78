"""Tests for outlier trimming and null distribution estimation."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest
from scipy.integrate import trapezoid

from qtlseq.analysis.null import (
    delta_snp_filter,
    estimate_null_params,
    hampel_filter,
    trim_outliers,
)
from qtlseq.analysis.significance import compute_pvalues
from qtlseq.core.models import OutlierFilter
from qtlseq.core.stats import calculate_g_statistic
from qtlseq.utils.errors import (
    EstimationFailureError,
    InvalidConfigurationError,
    InvalidInputError,
)


def g_level(skew: int) -> float:
    """G of a 200x/200x SNP whose alt allele is shifted by ``skew`` reads."""
    return float(
        calculate_g_statistic([100 + skew], [100 - skew], [100 - skew], [100 + skew])[0]
    )


@pytest.fixture
def background() -> tuple[np.ndarray, np.ndarray]:
    """G' and deltaSNP for 100 background SNPs in four G levels (40/30/20/10)."""
    skews = [3] * 40 + [5] * 30 + [7] * 20 + [9] * 10
    gprime = np.array([g_level(s) for s in skews])
    delta = np.array([s / 100 for s in skews])
    return gprime, delta


class TestDeltaSnpFilter:
    """Tests for the deltaSNP outlier filter."""

    def test_mask(self) -> None:
        """Test that SNPs with |deltaSNP| >= threshold are excluded."""
        mask = delta_snp_filter([0.0, 0.05, -0.099, 0.1, -0.2, 0.3], 0.1)
        assert mask.tolist() == [True, True, True, False, False, False]

    def test_negative_threshold_uses_absolute_value(self) -> None:
        """Test that the sign of the threshold is ignored."""
        mask = delta_snp_filter([0.05, -0.15], -0.1)
        assert mask.tolist() == [True, False]

    @pytest.mark.parametrize("threshold", [0.5, 0.6, -0.5])
    def test_threshold_too_large_raises(self, threshold: float) -> None:
        """Test that |threshold| >= 0.5 is rejected."""
        with pytest.raises(InvalidConfigurationError, match="less than 0.5"):
            delta_snp_filter([0.1], threshold)


class TestHampelFilter:
    """Tests for the one-sided Hampel outlier filter."""

    def test_extreme_value_excluded(self) -> None:
        """Test that a far upper outlier on the log scale is excluded."""
        gprime = [1.0] * 50 + [2.0] * 50 + [1e6]
        mask = hampel_filter(gprime)
        assert mask[:100].all()
        assert not mask[100]

    def test_low_values_always_kept(self) -> None:
        """Test that the rule is one-sided: small G' values are never trimmed."""
        gprime = [1e-6] + [1.0] * 50 + [2.0] * 50
        assert hampel_filter(gprime)[0]

    def test_non_positive_gprime_raises(self) -> None:
        """Test that G' <= 0 has no logarithm and is rejected."""
        with pytest.raises(InvalidInputError, match="positive"):
            hampel_filter([1.0, 0.0, 2.0])


class TestTrimOutliers:
    """Tests for trim_outliers."""

    def test_delta_snp_trims_qtl(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test that high deltaSNP SNPs are removed from the null set."""
        gprime, delta = background
        gprime = np.append(gprime, [80.0, 85.0])
        delta = np.append(delta, [0.45, -0.45])

        trimmed = trim_outliers(gprime, delta, OutlierFilter.DELTA_SNP, 0.1)
        assert trimmed.size == 100
        assert trimmed.max() < 80

    def test_delta_snp_requires_delta(self) -> None:
        """Test that the deltaSNP filter needs deltaSNP values."""
        with pytest.raises(InvalidInputError, match="deltaSNP"):
            trim_outliers([1.0, 2.0], None, "deltaSNP", 0.1)

    def test_delta_snp_length_mismatch(self) -> None:
        """Test that G' and deltaSNP must align."""
        with pytest.raises(InvalidInputError, match="equal length"):
            trim_outliers([1.0, 2.0], [0.0], "deltaSNP", 0.1)

    def test_hampel_ignores_delta(self) -> None:
        """Test that the Hampel filter works without deltaSNP values."""
        trimmed = trim_outliers([1.0] * 50 + [2.0] * 50 + [1e6], None, "Hampel")
        assert trimmed.size == 100

    def test_unknown_filter_raises(self) -> None:
        """Test that an unknown filter name is rejected."""
        with pytest.raises(InvalidConfigurationError, match="outlier_filter"):
            trim_outliers([1.0], [0.0], "median")

    def test_logs_method(
        self, background: tuple[np.ndarray, np.ndarray], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that the chosen filter is logged."""
        gprime, delta = background
        with caplog.at_level(logging.INFO, logger="qtlseq"):
            trim_outliers(gprime, delta, "deltaSNP", 0.1)
        assert "deltaSNP-index" in caplog.text


class TestEstimateNullParams:
    """Tests for estimate_null_params."""

    def test_median_and_mode(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test muE and varE against the median and mode of the G levels."""
        gprime, delta = background
        null = estimate_null_params(gprime, delta)

        # The median falls on the second level, the half-sample mode on the first
        assert null.median_trimmed == pytest.approx(g_level(5))
        assert null.mode_trimmed == pytest.approx(g_level(3))
        assert null.mu_e == pytest.approx(math.log(g_level(5)))
        assert null.var_e == pytest.approx(math.log(g_level(5) / g_level(3)))
        assert null.n_trimmed == 100
        assert null.n_total == 100
        assert null.outlier_filter is OutlierFilter.DELTA_SNP

    def test_qtl_does_not_move_null(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test that trimmed QTL SNPs leave the null unchanged."""
        gprime, delta = background
        clean = estimate_null_params(gprime, delta)
        with_qtl = estimate_null_params(
            np.append(gprime, [84.0] * 5), np.append(delta, [0.45] * 5)
        )
        assert with_qtl.mu_e == pytest.approx(clean.mu_e)
        assert with_qtl.var_e == pytest.approx(clean.var_e)
        assert with_qtl.n_total == 105
        assert with_qtl.n_trimmed == 100

    def test_hampel_filter(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test estimation with the Hampel filter."""
        gprime, _ = background
        null = estimate_null_params(gprime, outlier_filter="Hampel")
        assert null.outlier_filter is OutlierFilter.HAMPEL
        assert null.mu_e == pytest.approx(math.log(g_level(5)))
        assert null.var_e == pytest.approx(math.log(g_level(5) / g_level(3)))

    def test_var_e_is_non_negative(self) -> None:
        """Test that varE is positive even when the mode exceeds the median."""
        # Mode lands on the upper level, above the median
        gprime = [1.0] * 10 + [2.0] * 20 + [3.0] * 25
        null = estimate_null_params(gprime, [0.0] * 55)
        assert null.mode_trimmed > null.median_trimmed
        assert null.var_e > 0

    def test_all_trimmed_raises(self) -> None:
        """Test that an empty null set cannot be estimated."""
        with pytest.raises(EstimationFailureError, match="No SNPs left"):
            estimate_null_params([1.0, 2.0, 3.0], [0.3, -0.3, 0.4], "deltaSNP", 0.1)

    def test_zero_variance_raises(self) -> None:
        """Test that identical G' values give a degenerate null."""
        with pytest.raises(EstimationFailureError, match="zero variance"):
            estimate_null_params([2.0] * 20, [0.0] * 20)

    def test_invalid_threshold_before_data(self) -> None:
        """Test that configuration is checked before the G' values."""
        with pytest.raises(InvalidConfigurationError):
            estimate_null_params([0.0, -1.0], [0.0, 0.0], "deltaSNP", 0.6)

    def test_invalid_mode_bandwidth_raises(
        self, background: tuple[np.ndarray, np.ndarray]
    ) -> None:
        """Test that mode_bandwidth outside (0, 1) is rejected."""
        gprime, delta = background
        with pytest.raises(InvalidConfigurationError, match="mode_bandwidth"):
            estimate_null_params(gprime, delta, mode_bandwidth=1.0)

    def test_non_positive_gprime_raises(self) -> None:
        """Test that G' <= 0 is rejected."""
        with pytest.raises(InvalidInputError):
            estimate_null_params([1.0, 0.0, 2.0], [0.0, 0.0, 0.0])


class TestNullDistribution:
    """Tests for the fitted NullDistribution."""

    def test_fitted_parameters_give_pvalues(
        self, background: tuple[np.ndarray, np.ndarray]
    ) -> None:
        """Test p-values at the median and far in the tail of the fitted null."""
        gprime, delta = background
        null = estimate_null_params(gprime, delta)
        p = compute_pvalues([null.median_trimmed, 1e6], null.mu_e, null.var_e)
        assert p[0] == pytest.approx(0.5)
        assert p[1] < 1e-10
        assert null.sdlog == pytest.approx(math.sqrt(null.var_e))

    def test_pdf_peaks_at_trimmed_mode(
        self, background: tuple[np.ndarray, np.ndarray]
    ) -> None:
        """Test that the density peaks at exp(muE - varE), the trimmed mode."""
        gprime, delta = background
        null = estimate_null_params(gprime, delta)
        mode = null.mode_trimmed
        assert math.exp(null.mu_e - null.var_e) == pytest.approx(mode)
        assert null.pdf(mode) > null.pdf(0.9 * mode)
        assert null.pdf(mode) > null.pdf(1.1 * mode)

    def test_pdf_integrates_to_one(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test that the density integrates to approximately 1."""
        gprime, delta = background
        null = estimate_null_params(gprime, delta)
        x = np.linspace(1e-6, 500, 200_001)
        assert trapezoid(null.pdf(x), x) == pytest.approx(1.0, abs=1e-3)

    def test_repr(self, background: tuple[np.ndarray, np.ndarray]) -> None:
        """Test the string representation."""
        gprime, delta = background
        text = repr(estimate_null_params(gprime, delta))
        assert text.startswith("NullDistribution(muE=")
        assert "filter=deltaSNP" in text
