"""Summary report generation for qtlseq."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from qtlseq import __version__
from qtlseq.core.models import CHROM, GPRIME, POS, QVALUE
from qtlseq.utils.logging import get_logger
from qtlseq.utils.sorting import sort_chromosomes

if TYPE_CHECKING:
    import pandas as pd

    from qtlseq.core.models import NullDistribution

logger = get_logger(__name__)


@dataclass
class ChromosomeSummary:
    """Per-chromosome results.

    Attributes:
        chrom: Chromosome name.
        n_snps: Number of SNPs analysed.
        max_gprime: Highest G' on the chromosome.
        peak_position: Position of the highest G'.
        n_significant: SNPs with q-value below alpha.
    """

    chrom: str
    n_snps: int
    max_gprime: float
    peak_position: int
    n_significant: int


@dataclass
class AnalysisSummary:
    """Summary of a G' analysis run.

    Attributes:
        input_path: Path to the input SNP table.
        null: Fitted null distribution.
        alpha: FDR level used for significance.
        pvalue_threshold: BH p-value threshold at alpha (None if absent).
        gprime_threshold: The same threshold on the G' scale.
        chromosomes: Per-chromosome results in natural order.
        parameters: Analysis parameters.
    """

    input_path: str
    null: NullDistribution
    alpha: float
    pvalue_threshold: float | None
    gprime_threshold: float | None
    chromosomes: list[ChromosomeSummary] = field(default_factory=list)
    parameters: dict[str, Any] = field(default_factory=dict)

    @property
    def total_snps(self) -> int:
        return sum(c.n_snps for c in self.chromosomes)

    @property
    def significant_snps(self) -> int:
        return sum(c.n_significant for c in self.chromosomes)

    @classmethod
    def from_results(
        cls,
        results: pd.DataFrame,
        null: NullDistribution,
        alpha: float,
        pvalue_threshold: float | None,
        gprime_threshold: float | None,
        input_path: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> AnalysisSummary:
        """Build a summary from an analysed SNP table."""
        chromosomes = []
        for chrom in sort_chromosomes(results[CHROM].astype(str)):
            rows = results[results[CHROM].astype(str) == chrom]
            peak = rows[GPRIME].idxmax()
            chromosomes.append(
                ChromosomeSummary(
                    chrom=chrom,
                    n_snps=len(rows),
                    max_gprime=float(rows.at[peak, GPRIME]),
                    peak_position=int(rows.at[peak, POS]),
                    n_significant=int((rows[QVALUE] < alpha).sum()),
                )
            )
        return cls(
            input_path=input_path,
            null=null,
            alpha=alpha,
            pvalue_threshold=pvalue_threshold,
            gprime_threshold=gprime_threshold,
            chromosomes=chromosomes,
            parameters=dict(parameters or {}),
        )

    def to_text(self) -> str:
        """Format summary as human-readable text."""
        lines = [
            "=" * 70,
            "G' QTL Analysis Summary",
            "=" * 70,
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Version: {__version__}",
            f"Input: {self.input_path}",
            "",
            "NULL DISTRIBUTION",
            "-" * 70,
            f"Outlier filter: {self.null.outlier_filter.value}",
            f"SNPs used for null: {self.null.n_trimmed:,} of {self.null.n_total:,}",
            f"Median of trimmed G': {self.null.median_trimmed:.4f}",
            f"Mode of trimmed G': {self.null.mode_trimmed:.4f}",
            f"muE: {self.null.mu_e:.4f}",
            f"varE: {self.null.var_e:.4f}",
            "",
            f"SIGNIFICANCE (FDR alpha = {self.alpha})",
            "-" * 70,
        ]

        if self.pvalue_threshold is None:
            lines.append("No SNP passes the FDR threshold")
        else:
            lines.append(f"P-value threshold: {self.pvalue_threshold:.4g}")
            lines.append(f"G' threshold: {self.gprime_threshold:.4f}")
        lines.append(f"Significant SNPs: {self.significant_snps:,} of {self.total_snps:,}")

        lines.extend(["", "CHROMOSOMES", "-" * 70])
        lines.append(f"{'chrom':<16}{'SNPs':>10}{'max G prime':>14}{'peak':>14}{'significant':>14}")
        for c in self.chromosomes:
            lines.append(
                f"{c.chrom:<16}{c.n_snps:>10,}{c.max_gprime:>14.3f}"
                f"{c.peak_position:>14,}{c.n_significant:>14,}"
            )

        lines.extend(["", "PARAMETERS", "-" * 70])
        for key, value in sorted(self.parameters.items()):
            if isinstance(value, float):
                lines.append(f"  {key}: {value:g}")
            else:
                lines.append(f"  {key}: {value}")

        lines.extend(["", "=" * 70])
        return "\n".join(lines)


def write_summary(summary: AnalysisSummary, path: str | Path) -> None:
    """Write summary report to a text file."""
    path = Path(path)
    logger.info(f"Writing summary to {path}")

    with open(path, "w") as f:
        f.write(summary.to_text())
        f.write("\n")
