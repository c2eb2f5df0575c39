#!/usr/bin/env python3
"""
analyze_transfers.py

Looks at the transfers in a CBA export and answers two questions:
- which payers send money regularly, and which look like business customers
- how much went through the known wholesale vendors (Joymart/Yaochii, Dragon Bay)

The payer report goes to stdout; the vendor totals are written to 统计结果.txt
next to the input.

Env (optional, read from .env):
- BANK_INPUT_FILE         default input when no argument is given
- BOOKKEEPING_OUTPUT_DIR  output directory

Usage:
  python analyze_transfers.py [CSVData.csv] [--min-count N]
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from bookkeeping.config import DEFAULT_TRANSFER_FILE, TRANSFER_REPORT
from bookkeeping.io import ensure_dirs, load_settings, read_statement_lines
from bookkeeping.parser import StatementParseError, parse_bank_statement
from bookkeeping.transfers import (
    analyze_payers,
    count_payers,
    group_vendor_transfers,
    render_payer_report,
    render_vendor_summary,
)


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Analyze incoming transfers in a CBA export")
    ap.add_argument("file", nargs="?", help=f"CBA CSV export (default: {DEFAULT_TRANSFER_FILE})")
    ap.add_argument("--output_dir", "--output-dir", dest="output_dir", type=str,
                    help="Directory to write outputs (default: next to the input)")
    ap.add_argument("--min_count", "--min-count", dest="min_count", type=int, default=2,
                    help="Transfers needed to count as a regular payer (default: 2)")
    args = ap.parse_args(argv)

    try:
        s = load_settings(args.file, args.output_dir,
                          default_input=DEFAULT_TRANSFER_FILE, input_env="BANK_INPUT_FILE")
    except ValueError as e:
        raise SystemExit(f"Error: {e}")

    try:
        lines = read_statement_lines(s.input_path)
    except FileNotFoundError:
        raise SystemExit(
            f"Error: file not found: {s.input_path.resolve()}\n"
            "Usage: python analyze_transfers.py [file]"
        )

    try:
        transactions = parse_bank_statement(lines)
    except StatementParseError as e:
        raise SystemExit(f"Error: {e}")

    print(f"[INFO] {len(transactions)} transactions")

    payers = analyze_payers(transactions, min_count=args.min_count)
    print(render_payer_report(payers, total_payers=count_payers(transactions)), end="")

    groups = group_vendor_transfers(transactions)
    ensure_dirs(s)
    out = s.output(TRANSFER_REPORT)
    out.write_text(render_vendor_summary(groups, s.input_path.name), encoding="utf-8")
    print(f"\n✓ Wrote: {out}")


if __name__ == "__main__":
    main()
