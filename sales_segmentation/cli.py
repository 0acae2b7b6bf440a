"""Command line entry points for the sales segmentation engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from sales_segmentation.foundation.normalizer import (
    AmountConvention,
    detect_field_mapping,
    missing_required_fields,
    resolve_timestamp,
)
from sales_segmentation.pandas import dataframe_to_rows, profiles_to_dataframe
from sales_segmentation.pipeline import AnalysisConfig, run_analysis
from sales_segmentation.synthetic import SampleConfig, generate_sample_rows

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_rows(path: Path) -> list[dict[str, Any]]:
    """Read source rows from a JSON array of objects or a CSV file."""
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    if resolved.suffix.lower() == ".csv":
        return dataframe_to_rows(pd.read_csv(resolved))

    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError("Expected a list of row objects in the input file")
    return [dict(item) for item in payload]


def _resolve_output(path: Path) -> Path:
    output_path = path.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_path.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_path} must reside within the current working directory"
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def _parse_now(value: str | None) -> datetime:
    if value is None:
        return datetime.now()
    now = resolve_timestamp(value)
    if now is None:
        raise ValueError(f"Could not parse reference time: {value!r}")
    return now


def analyze_sales_cli(argv: list[str] | None = None) -> int:
    """Segment customers from a sales export and write a JSON report.

    The report contains customer profiles, segment and cluster summaries,
    temporal revenue buckets and holiday lift figures.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 when the input yields no transactions
        or the field mapping misses required fields)
    """
    parser = argparse.ArgumentParser(
        description="Segment customers from sales transactions"
    )
    parser.add_argument(
        "input", type=Path, help="Path to a JSON array of rows or a CSV file"
    )
    parser.add_argument(
        "--mapping",
        type=Path,
        help="JSON file mapping canonical fields to source columns. "
        "Detected from the column headers when omitted.",
    )
    parser.add_argument(
        "--now",
        type=str,
        help="Reference time for recency (ISO format). Defaults to the current time.",
    )
    parser.add_argument(
        "--amount-convention",
        choices=[item.value for item in AmountConvention],
        default=AmountConvention.UNIT_PRICE.value,
        help="Whether the Amount column is a unit price or a line total "
        "(default: unit_price)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for the JSON report (stdout when omitted).",
    )
    parser.add_argument(
        "--customers-csv",
        type=Path,
        help="Optional path for a CSV export of customer profiles.",
    )
    parser.add_argument(
        "--include-transactions",
        action="store_true",
        help="Include normalised transactions in the JSON report.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    logger.info(f"Loading rows from {args.input}")
    rows = _load_rows(args.input)
    if not rows:
        logger.error("No rows found in input file")
        return 1

    if args.mapping:
        with args.mapping.open("r", encoding="utf-8") as fh:
            field_mapping = json.load(fh)
    else:
        field_mapping = detect_field_mapping(list(rows[0].keys()))
        logger.info(f"Detected field mapping: {field_mapping}")

    missing = missing_required_fields(field_mapping)
    if missing:
        logger.error(f"Field mapping is missing required fields: {missing}")
        return 1

    now = _parse_now(args.now)
    config = AnalysisConfig(amount_convention=AmountConvention(args.amount_convention))
    analysis = run_analysis(rows, now, field_mapping, config)

    if analysis.is_empty:
        logger.error("No transactions survived normalisation")
        return 1

    logger.info(
        f"Profiled {len(analysis.profiles)} customers from {len(analysis.store)} "
        f"transactions ({analysis.store.dropped_rows} rows dropped)"
    )

    payload = analysis.as_dict(include_transactions=args.include_transactions)
    if args.output:
        output_path = _resolve_output(args.output)
        with output_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
        logger.info(f"Report exported to {output_path}")
    else:  # stdout fallback enables piping in shell usage.
        json.dump(payload, fp=sys.stdout, indent=2, ensure_ascii=False)
        print()

    if args.customers_csv:
        csv_path = _resolve_output(args.customers_csv)
        profiles_to_dataframe(analysis.profiles).to_csv(csv_path, index=False)
        logger.info(f"Customer profiles exported to {csv_path}")

    return 0


def generate_sample_data_cli(argv: list[str] | None = None) -> int:
    """Write synthetic sales rows as a JSON array."""
    parser = argparse.ArgumentParser(description="Generate synthetic sales rows")
    parser.add_argument(
        "--rows", type=int, default=1000, help="Number of rows (default: 1000)"
    )
    parser.add_argument("--seed", type=int, help="Random seed for reproducibility")
    parser.add_argument(
        "--now",
        type=str,
        help="Latest possible invoice time (ISO format). Defaults to the current time.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for the JSON rows (stdout when omitted).",
    )

    args = parser.parse_args(argv)
    _configure_logging(False)

    rows = generate_sample_rows(
        args.rows, _parse_now(args.now), SampleConfig(seed=args.seed)
    )
    if args.output:
        output_path = _resolve_output(args.output)
        with output_path.open("w", encoding="utf-8") as fh:
            json.dump(rows, fh, indent=2)
        logger.info(f"Wrote {len(rows)} sample rows to {output_path}")
    else:
        json.dump(rows, fp=sys.stdout, indent=2)
        print()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(analyze_sales_cli())
