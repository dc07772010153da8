from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from pos_analytics.domain.config import Config
from pos_analytics.domain.errors import AnalysisError, EmptyDatasetError
from pos_analytics.pipelines.analysis import run_analysis, save_outputs
from pos_analytics.utilities.log import setup_logger
from pos_analytics.utilities.rules import format_rules

NO_RULES_MESSAGE = "No rules were generated. Try lowering the support or confidence thresholds."


def run_from_cli(
    *,
    input_path: Path,
    output_dir: Path,
    config: Config,
    verbose: bool,
    log_file: bool,
) -> int:
    """
    Load the CSV, run the analysis, save tables under output_dir and print the
    top rules. Returns the process exit code.
    """
    logger = setup_logger(
        "pos_analytics",
        verbose=verbose,
        log_to_file=log_file,
        log_file_path=output_dir / "pos_analytics.log",
    )

    logger.info("Avvio analisi (CLI)")
    logger.info(f"input={input_path}")
    logger.info(f"output_dir={output_dir}")
    logger.info(f"clusters={config.n_clusters}")
    logger.info(f"min_support={config.min_support} min_confidence={config.min_confidence}")
    logger.info(f"seed={config.random_state} workers={config.workers}")

    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 2

    raw = pd.read_csv(input_path)

    try:
        fp = run_analysis(raw, config, logger=logger)
    except EmptyDatasetError as exc:
        print(f"Empty dataset after cleaning: {exc}", file=sys.stderr)
        return 1
    except AnalysisError as exc:
        print(f"Analysis failed: {exc}", file=sys.stderr)
        return 1

    save_outputs(fp, output_dir)

    if fp.segmentation_error is not None:
        print(f"Clustering skipped: {fp.segmentation_error}")
    else:
        sizes = fp.extras.get("cluster_sizes", [])
        print(f"K-Means clusters (k={config.n_clusters}): sizes={sizes}")

    if not fp.has_rules:
        print(NO_RULES_MESSAGE)
        return 0

    print(f"Top {config.top_n_rules} Rules by Confidence:")
    print(format_rules(fp.rules_by_confidence))
    print(f"Top {config.top_n_rules} Rules by Support:")
    print(format_rules(fp.rules_by_support))
    return 0


def build_parser() -> argparse.ArgumentParser:
    defaults = Config()
    p = argparse.ArgumentParser(description="POS transactions: customer segments and co-purchase rules")
    p.add_argument("--input", type=Path, required=True, help="CSV with paymentType, age, city, items, total[, count]")
    p.add_argument("--output-dir", type=Path, default=Path("output"), help="Output directory (default: output)")
    p.add_argument(
        "--clusters",
        type=int,
        default=defaults.n_clusters,
        choices=range(defaults.min_clusters, defaults.max_clusters + 1),
        help=f"Number of K-Means clusters (default: {defaults.n_clusters})",
    )
    p.add_argument("--min-support", type=float, default=defaults.min_support, help="Minimum support in (0, 1]")
    p.add_argument("--min-confidence", type=float, default=defaults.min_confidence, help="Minimum confidence in (0, 1]")
    p.add_argument("--seed", type=int, default=defaults.random_state, help="Random seed for K-Means initialization")
    p.add_argument("--workers", type=int, default=1, help="Numero di workers per il conteggio del supporto (default: 1)")
    p.add_argument(
        "--verbose",
        type=str,
        default="true",
        choices=["true", "false"],
        help="Se true, log a console (default: true)",
    )
    p.add_argument(
        "--log-file",
        type=str,
        default="false",
        choices=["true", "false"],
        help="Se true, log anche su file nella output dir (default: false)",
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(
            n_clusters=args.clusters,
            min_support=args.min_support,
            min_confidence=args.min_confidence,
            random_state=args.seed,
            workers=args.workers,
        )
    except (AnalysisError, ValueError) as exc:
        parser.error(str(exc))

    return run_from_cli(
        input_path=args.input,
        output_dir=args.output_dir,
        config=config,
        verbose=args.verbose.lower() == "true",
        log_file=args.log_file.lower() == "true",
    )


if __name__ == "__main__":
    raise SystemExit(main())
