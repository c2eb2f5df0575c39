#!/usr/bin/env python3
"""
classify_bank_statement.py

Classifies a CBA bank CSV export into income/expense/refund and
company/personal/unknown, with a confidence and a reason per row.

Rules are deliberately conservative for tax work:
- every credit that is not a refund is company income
- debits default to personal unless a business/supplier keyword matches
- supermarket and possible-supplier rows are "unknown" and need review

Outputs:
- classified_<input>.csv          (or the second argument)
- classified_<input>_summary.txt  income/expense totals per party

Usage:
  python classify_bank_statement.py <input.csv> [output.csv]
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from bookkeeping.aggregate import classify_bank_transactions, summarize_parties
from bookkeeping.io import load_env_file, read_statement_lines
from bookkeeping.parser import StatementParseError, parse_bank_statement
from bookkeeping.report import render_bank_summary, write_bank_ledger


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"classified_{input_path.name}")


def summary_path_for(output_path: Path) -> Path:
    return output_path.with_name(f"{output_path.stem}_summary.txt")


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Classify a CBA CSV export for bookkeeping")
    ap.add_argument("input", type=str, help="CBA CSV export")
    ap.add_argument("output", nargs="?", type=str, help="Classified CSV (default: classified_<input>)")
    args = ap.parse_args(argv)

    load_env_file()

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else default_output_path(input_path)

    try:
        lines = read_statement_lines(input_path)
    except FileNotFoundError:
        raise SystemExit(
            f"Error: file not found: {input_path.resolve()}\n"
            "Usage: python classify_bank_statement.py <input.csv> [output.csv]"
        )

    try:
        transactions = parse_bank_statement(lines)
    except StatementParseError as e:
        raise SystemExit(f"Error: {e}")

    ledger = classify_bank_transactions(transactions)
    write_bank_ledger(ledger, output_path)
    print(f"✓ Wrote: {output_path} ({len(ledger)} rows)")

    totals = summarize_parties(ledger)
    summary_text = render_bank_summary(totals, input_path=input_path, output_path=output_path)
    summary_path = summary_path_for(output_path)
    summary_path.write_text(summary_text, encoding="utf-8")
    print(f"✓ Wrote: {summary_path}")

    print()
    print(summary_text, end="")


if __name__ == "__main__":
    main()
