"""Command-line interface for qtlseq.

This module defines the Click-based CLI for running a G' analysis on a
filtered SNP table and for querying FDR thresholds of finished runs.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from qtlseq import __version__
from qtlseq.analysis.gprime import GprimeAnalysis, subset_chromosomes
from qtlseq.analysis.significance import fdr_threshold, fdr_threshold_value
from qtlseq.core.models import (
    CHROM,
    GPRIME,
    NEG_LOG10_PVAL,
    PVALUE,
    QVALUE,
    GprimeParameters,
    OutlierFilter,
)
from qtlseq.io.readers import read_gprime_results, read_snp_table
from qtlseq.io.summary import AnalysisSummary, write_summary
from qtlseq.io.writers import write_gprime_tsv
from qtlseq.utils.errors import QTLSeqError
from qtlseq.utils.logging import (
    log_step,
    print_error,
    print_file_created,
    print_info,
    print_section,
    print_stats,
    print_success,
    print_warning,
    setup_logging,
)
from qtlseq.utils.sorting import sort_chromosomes
from qtlseq.utils.validation import validate_alpha

console = Console(stderr=True)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="qtlseq")
@click.option(
    "--verbose", "-v", is_flag=True, default=False, help="Enable verbose output"
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """qtlseq: G' QTL mapping from bulk segregant sequencing.

    Computes the smoothed G statistic (G') for every SNP and estimates
    genome-wide significance from a non-parametric null distribution.

    \b
    Quick start:
        qtlseq run --input snps.tsv -o results --window-size 2e6

    \b
    The input table must have the columns CHROM, POS, AD_REF.LOW,
    AD_REF.HIGH, AD_ALT.LOW, AD_ALT.HIGH and deltaSNP.
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level)


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar="FILE",
    help="Tab-separated SNP table.",
)
@click.option(
    "--out",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    metavar="PREFIX",
    help="Output prefix. Files are named {PREFIX}_gprime.tsv and {PREFIX}_summary.txt.",
)
@click.option(
    "--window-size",
    default=1e6,
    show_default=True,
    type=float,
    metavar="BP",
    help="Smoothing window size in base pairs.",
)
@click.option(
    "--outlier-filter",
    type=click.Choice([f.value for f in OutlierFilter]),
    default=OutlierFilter.DELTA_SNP.value,
    show_default=True,
    help="Method for excluding putative QTL when estimating the null distribution.",
)
@click.option(
    "--filter-threshold",
    default=0.1,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="Absolute delta SNP index above which SNPs are excluded (deltaSNP filter only).",
)
@click.option(
    "--mode-bandwidth",
    default=0.5,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="Fraction of the sample kept at each half-sample mode step.",
)
@click.option(
    "--alpha",
    default=0.01,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="False discovery rate used to report significant SNPs.",
)
def run(
    input_path: Path,
    out: Path,
    window_size: float,
    outlier_filter: str,
    filter_threshold: float,
    mode_bandwidth: float,
    alpha: float,
) -> None:
    """Run the G' analysis on a SNP table.

    \b
    Examples:
        qtlseq run -i snps.tsv -o results
        qtlseq run -i snps.tsv -o results --window-size 2e6 --outlier-filter Hampel

    \b
    Output files:
      {PREFIX}_gprime.tsv    Input table with nSNPs, tricubeDeltaSNP, G,
                             Gprime, pvalue, negLog10Pval and qvalue
      {PREFIX}_summary.txt   Null distribution and significance summary
    """
    params = GprimeParameters(
        window_size=window_size,
        outlier_filter=outlier_filter,
        filter_threshold=filter_threshold,
        mode_bandwidth=mode_bandwidth,
    )

    print_info(f"Input table: {input_path}")
    print_info(f"Output prefix: {out}")
    print_info(f"Window: {window_size:,.0f} bp, outlier filter: {outlier_filter}")

    try:
        params = params.validate()
        validate_alpha(alpha)

        log_step(1, 3, "Reading SNP table")
        snps = read_snp_table(input_path)

        log_step(2, 3, "Running G' analysis")
        analysis = GprimeAnalysis(params)
        results = analysis.run(snps)
        null = analysis.null_distribution

        log_step(3, 3, "Writing results")
        out_dir = out.parent
        if str(out_dir) != "." and not out_dir.exists():
            out_dir.mkdir(parents=True, exist_ok=True)

        p_threshold = analysis.fdr_threshold(alpha)
        g_threshold = fdr_threshold_value(results, alpha, GPRIME)
        if p_threshold is None:
            print_warning(f"No SNP is significant at FDR {alpha}")

        gprime_file = Path(f"{out}_gprime.tsv")
        write_gprime_tsv(results, gprime_file)

        summary = AnalysisSummary.from_results(
            results,
            null=null,
            alpha=alpha,
            pvalue_threshold=p_threshold,
            gprime_threshold=g_threshold,
            input_path=str(input_path),
            parameters={
                "window_size": params.window_size,
                "outlier_filter": params.outlier_filter.value,
                "filter_threshold": params.filter_threshold,
                "mode_bandwidth": params.mode_bandwidth,
                "alpha": alpha,
            },
        )
        summary_file = Path(f"{out}_summary.txt")
        write_summary(summary, summary_file)

        print_stats(
            {
                "SNPs": len(results),
                "Chromosomes": len(summary.chromosomes),
                "SNPs in null set": null.n_trimmed,
                "muE": null.mu_e,
                "varE": null.var_e,
                "P-value threshold": p_threshold if p_threshold is not None else "none",
                f"Significant SNPs (q < {alpha})": summary.significant_snps,
            },
            title="G' Analysis",
        )

        print_success("Analysis complete")
        print_file_created(gprime_file)
        print_file_created(summary_file)

    except QTLSeqError as e:
        e.display()
        raise SystemExit(1) from e
    except FileNotFoundError as e:
        print_error(str(e))
        raise SystemExit(1) from e


@cli.command()
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar="FILE",
    help="G' results table written by 'qtlseq run'.",
)
@click.option(
    "--alpha",
    default=0.01,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="False discovery rate.",
)
@click.option(
    "--chrom",
    "chromosomes",
    multiple=True,
    metavar="NAME",
    help="Report only these chromosomes (repeatable).",
)
def threshold(input_path: Path, alpha: float, chromosomes: tuple[str, ...]) -> None:
    """Report the genome-wide FDR threshold of a finished analysis.

    The threshold is always computed from all SNPs; --chrom only limits
    which chromosomes are listed.

    \b
    Example:
        qtlseq threshold -i results_gprime.tsv --alpha 0.05 --chrom Chr3 --chrom Chr4
    """
    try:
        results = read_gprime_results(input_path)
        p_threshold = fdr_threshold(results[PVALUE].to_numpy(), alpha)
        shown = subset_chromosomes(results, chromosomes) if chromosomes else results

        print_section(f"FDR threshold (alpha = {alpha})")
        if p_threshold is None:
            print_warning("The q threshold is too low; no SNP passes it")
        else:
            print_stats(
                {
                    "P-value": p_threshold,
                    "G'": fdr_threshold_value(results, alpha, GPRIME),
                    "-log10(p)": fdr_threshold_value(results, alpha, NEG_LOG10_PVAL),
                },
                title="Threshold",
            )

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Chromosome")
        table.add_column("SNPs", justify="right")
        table.add_column("Max G'", justify="right")
        table.add_column("Significant", justify="right")
        for chrom in sort_chromosomes(shown[CHROM]):
            rows = shown[shown[CHROM] == chrom]
            table.add_row(
                chrom,
                f"{len(rows):,}",
                f"{rows[GPRIME].max():.3f}",
                f"{int((rows[QVALUE] < alpha).sum()):,}",
            )
        console.print(table)

    except QTLSeqError as e:
        e.display()
        raise SystemExit(1) from e


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
