#!/usr/bin/env python3
"""
process_alipay_records.py

Classifies an Alipay purchase export for the bakery's tax bookkeeping:
raw materials, consumables, equipment, overseas payments, and everything else.

Only successful expenses are considered. Every record lands in exactly one
category; unmatched purchases go to the review section of the excluded list.

Outputs (next to the input file unless --output-dir / BOOKKEEPING_OUTPUT_DIR):
- 原材料耗材订单列表.csv   raw materials + consumables
- 处理统计.txt             counts, totals and shares per category
- 海外支付订单列表.csv     overseas payments
- 设备订单列表.csv         equipment
- 排除订单列表.csv         absolute excludes + rows needing manual review
- 分类汇总.xlsx            optional workbook (--excel)

Env (optional, read from .env):
- ALIPAY_INPUT_FILE       default input when no argument is given
- BOOKKEEPING_OUTPUT_DIR  output directory
- ALIPAY_HEADER_LINES     metadata lines at the top of the export (default 5)

Usage:
  python process_alipay_records.py [alipay_record.txt] [--output-dir DIR] [--excel]
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from bookkeeping.aggregate import (
    classify_records,
    summarize_categories,
    summarize_excluded,
)
from bookkeeping.config import (
    DEFAULT_ALIPAY_FILE,
    EQUIPMENT_LIST,
    EXCEL_WORKBOOK,
    EXCLUDED_LIST,
    OVERSEAS_LIST,
    RAW_CONSUMABLE_LIST,
    STATISTICS_REPORT,
)
from bookkeeping.io import ensure_dirs, load_settings, read_statement_lines
from bookkeeping.parser import parse_alipay_records
from bookkeeping.records import Category, ExcludeType
from bookkeeping.report import (
    format_money,
    save_excel,
    write_excluded_list,
    write_order_list,
    write_statistics,
)

USAGE = (
    "Usage: python process_alipay_records.py [file]\n"
    f"Example: python process_alipay_records.py {DEFAULT_ALIPAY_FILE}"
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Classify Alipay purchase records for bakery bookkeeping")
    ap.add_argument("file", nargs="?", help=f"Alipay export (default: {DEFAULT_ALIPAY_FILE})")
    ap.add_argument("--output_dir", "--output-dir", dest="output_dir", type=str,
                    help="Directory to write outputs (default: next to the input)")
    ap.add_argument("--excel", action="store_true", help=f"Also write {EXCEL_WORKBOOK}")
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        s = load_settings(args.file, args.output_dir, default_input=DEFAULT_ALIPAY_FILE)
    except ValueError as e:
        raise SystemExit(f"Error: {e}\n{USAGE}")

    try:
        lines = read_statement_lines(s.input_path)
    except FileNotFoundError:
        raise SystemExit(f"Error: file not found: {s.input_path.resolve()}\n{USAGE}")

    print(f"Parsing Alipay records: {s.input_path.name}...")
    records = parse_alipay_records(lines, header_lines=s.header_lines)
    print(f"Parsed {len(records)} successful expense records")

    ledger = classify_records(records)
    summary = summarize_categories(ledger)

    print("\nCategory summary:")
    for _, row in summary.iterrows():
        if row["Count"]:
            print(f"  {row['Category']}: {row['Count']} records, total {format_money(row['Total'])}")

    print("\nWriting outputs...")
    ensure_dirs(s)

    write_order_list(ledger, s.output(RAW_CONSUMABLE_LIST), [Category.RAW_MATERIAL, Category.CONSUMABLE])
    print(f"✓ Wrote: {RAW_CONSUMABLE_LIST}")

    write_statistics(summary, s.output(STATISTICS_REPORT))
    print(f"✓ Wrote: {STATISTICS_REPORT}")

    write_order_list(ledger, s.output(OVERSEAS_LIST), [Category.OVERSEAS_PAYMENT])
    print(f"✓ Wrote: {OVERSEAS_LIST}")

    write_order_list(ledger, s.output(EQUIPMENT_LIST), [Category.EQUIPMENT])
    print(f"✓ Wrote: {EQUIPMENT_LIST}")

    write_excluded_list(ledger, s.output(EXCLUDED_LIST))
    excluded = summarize_excluded(ledger)
    absolute = excluded[ExcludeType.ABSOLUTE.value]
    review = excluded[ExcludeType.POSSIBLY_RELATED.value]
    print(f"✓ Wrote: {EXCLUDED_LIST}")
    print(f"  Absolutely unrelated: {absolute['Count']} records, total {format_money(absolute['Total'])}")
    print(f"  Needs manual review : {review['Count']} records, total {format_money(review['Total'])}")

    if args.excel:
        save_excel({"Summary": summary, "Ledger": ledger}, s.output(EXCEL_WORKBOOK))
        print(f"✓ Wrote: {EXCEL_WORKBOOK}")

    print("\nDone.")


if __name__ == "__main__":
    main()
