"""
report.py

Writers for the bookkeeping outputs.

CSV files are UTF-8 with a byte-order mark (Excel opens them with the right
encoding) and every field double-quoted. Money is always rendered with two
decimals.
"""

from __future__ import annotations

import csv
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .aggregate import CENT, grand_totals
from .records import Category, ExcludeType

ORDER_LIST_HEADER = ["订单号", "支付日期时间", "产品名称", "价格（元）"]
EXCLUDED_LIST_HEADER = ORDER_LIST_HEADER + ["排除原因"]

CATEGORY_LABELS: Dict[str, str] = {
    Category.RAW_MATERIAL.value: "原材料",
    Category.CONSUMABLE.value: "耗材",
    Category.EQUIPMENT.value: "设备",
    Category.OVERSEAS_PAYMENT.value: "海外支付",
    Category.OTHER.value: "其他不相关",
}

EXCLUDE_SECTIONS = [
    (ExcludeType.ABSOLUTE.value, "=== 绝对不相干 ==="),
    (ExcludeType.POSSIBLY_RELATED.value, "=== 不直接相关但有可能，需要人工确认 ==="),
]

RULE = "=" * 60
THIN_RULE = "-" * 60
LABEL_WIDTH = 14


def format_money(x: object) -> str:
    value = x if isinstance(x, Decimal) else Decimal(str(x))
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def _pad_label(label: str) -> str:
    # CJK glyphs take two columns in a terminal/editor
    width = sum(2 if ord(ch) > 0x2E80 else 1 for ch in label)
    return label + " " * max(0, LABEL_WIDTH - width)


def _write_quoted_csv(path: Path, header: List[str], blocks: Iterable[object]) -> None:
    """
    Write `header` unquoted, then each block: a str is written as a raw line,
    a DataFrame as fully quoted rows.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8-sig", newline="") as f:
        f.write(",".join(header) + "\n")
        for block in blocks:
            if isinstance(block, str):
                f.write(block)
            elif not block.empty:
                block.to_csv(
                    f, header=False, index=False,
                    quoting=csv.QUOTE_ALL, lineterminator="\n",
                )


def _order_rows(ledger: pd.DataFrame, with_reason: bool = False) -> pd.DataFrame:
    cols = ["Order_ID", "Pay_Time", "Product_Name", "Amount"]
    if with_reason:
        cols.append("Reason")
    out = ledger[cols].copy()
    out["Amount"] = out["Amount"].map(format_money)
    return out


# ======================================================
# PURCHASE REPORTS
# ======================================================

def write_order_list(ledger: pd.DataFrame, path: Path, categories: Iterable[object]) -> int:
    """Write the rows of the requested categories. Returns the row count."""
    wanted = {c.value if isinstance(c, Category) else str(c) for c in categories}
    rows = ledger[ledger["Category"].isin(wanted)]
    _write_quoted_csv(path, ORDER_LIST_HEADER, [_order_rows(rows)])
    return len(rows)


def render_statistics(summary: pd.DataFrame, title: str = "支付宝交易记录处理统计") -> str:
    totals = grand_totals(summary)
    lines = [RULE, f"{title:^50}".rstrip(), RULE, "", "类别统计：", THIN_RULE]

    for _, row in summary.iterrows():
        label = _pad_label(CATEGORY_LABELS.get(row["Category"], row["Category"]))
        lines.append(f"{label}: {row['Count']:>4} 笔    {format_money(row['Total']):>12} 元")

    lines.append(THIN_RULE)
    lines.append(
        f"{_pad_label('合计')}: {totals['Count']:>4} 笔    {format_money(totals['Total']):>12} 元"
    )
    lines.append(RULE)

    lines += ["", "占比分析：", THIN_RULE]
    if totals["Total"] > 0:
        for _, row in summary.iterrows():
            label = _pad_label(CATEGORY_LABELS.get(row["Category"], row["Category"]))
            lines.append(f"{label}: {format_money(row['Pct'])}%")
    lines.append(RULE)

    return "\n".join(lines) + "\n"


def write_statistics(summary: pd.DataFrame, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_statistics(summary), encoding="utf-8")


def write_excluded_list(ledger: pd.DataFrame, path: Path) -> Dict[str, int]:
    """
    Two-section review list of `other` rows: absolute excludes first, then the
    possibly-related rows that need a human decision.
    """
    other = ledger[ledger["Category"] == Category.OTHER.value]
    blocks: List[object] = []
    counts: Dict[str, int] = {}
    for ex_type, heading in EXCLUDE_SECTIONS:
        part = other[other["Exclude_Type"] == ex_type]
        counts[ex_type] = len(part)
        blocks.append(f"\n{heading}\n")
        blocks.append(_order_rows(part, with_reason=True))

    _write_quoted_csv(path, EXCLUDED_LIST_HEADER, blocks)
    return counts


def _excel_ready(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    for col in df.columns:
        if df[col].map(lambda v: isinstance(v, Decimal)).any():
            df[col] = df[col].map(lambda v: float(v) if isinstance(v, Decimal) else v)
    return df


def save_excel(tables: Mapping[str, pd.DataFrame], path: Path) -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in tables.items():
            _excel_ready(df).to_excel(writer, sheet_name=name[:31], index=False)


# ======================================================
# BANK REPORTS
# ======================================================

def write_bank_ledger(ledger: pd.DataFrame, path: Path) -> None:
    out = ledger.copy()
    out["Amount"] = out["Amount"].map(format_money)
    _write_quoted_csv(path, list(ledger.columns), [out])


def render_bank_summary(
    totals: Mapping[str, Decimal],
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
) -> str:
    lines = ["=" * 80, "CBA CSV classification summary", "=" * 80]
    if input_path is not None:
        lines.append(f"Input file : {input_path}")
    if output_path is not None:
        lines.append(f"Output file: {output_path}")
    lines += [
        "",
        "Income summary (amount > 0):",
        f"  Company income : ${format_money(totals['company_income'])}",
        f"  Personal income: ${format_money(totals['personal_income'])}",
        "",
        "Expense summary (absolute values):",
        f"  Company expense : ${format_money(totals['company_expense'])}",
        f"  Personal expense: ${format_money(totals['personal_expense'])}",
        f"  Unknown expense : ${format_money(totals['unknown_expense'])}",
        "",
        'Note: "unknown" and low-confidence rows should be reviewed manually '
        "before final tax figures.",
    ]
    return "\n".join(lines) + "\n"
