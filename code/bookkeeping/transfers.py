"""
transfers.py

Incoming-transfer analysis over CBA exports: who pays the shop regularly,
which payers look like business customers, and how much went through the
known wholesale vendors.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .aggregate import decimal_sum
from .keywords import PAYER_BUSINESS_KEYWORDS, TRANSFER_EXCLUDE_KEYWORDS, VENDOR_GROUPS
from .records import BankTransaction
from .report import format_money

PAYER_PREFIXES = [
    r"^Fast Transfer From ",
    r"^Direct Credit \d+ ",
    r"^Transfer from ",
    r"^Refund Purchase ",
]

PAYER_TITLES = {"MISS", "MR", "MRS", "MS", "DR"}

# Suffix noise appended by banking apps / invoice references
PAYER_SUFFIX_PATTERNS = [
    r"\s+(CREDIT TO ACCOUNT|CAKE|CUPCAKE|BAKERY|DESSERT).*$",
    r"\s+(INV|XTC|JIPO|UCO|UVO)\d+.*$",
    r"\s+(INV|XTC|JIPO|UCO|UVO).*$",
    r"\s+\d+F.*$",  # floor numbers like "32F"
    r"\s+_.*$",
]

OTHER_GROUP = "Other"
REFUND_GROUP = "Excluded Refunds"

PAYER_COLUMNS = ["Payer", "Count", "Total", "Average", "Is_Business", "Name_Variants", "Transactions"]


# ======================================================
# PAYER NAMES
# ======================================================

def extract_payer_name(description: str) -> str:
    """
    Pull the payer out of a transfer description.

    "MING HUANG INV20250529001 Joymart" -> "MING HUANG INV20250529001"
    "YAOCHII PTY LTD Yaochii"           -> "YAOCHII PTY LTD"
    "MISS JIEXING YI Jiexing"           -> "MISS JIEXING YI"
    """
    name = description or ""
    for pat in PAYER_PREFIXES:
        name = re.sub(pat, "", name, flags=re.IGNORECASE)

    parts = name.split()
    upper = [p.upper() for p in parts]

    for i, p in enumerate(upper):
        if p in ("PTY", "LTD"):
            return " ".join(parts[:i + 2])

    for i, p in enumerate(upper):
        if p in PAYER_TITLES:
            if len(parts) > i + 2:
                return " ".join(parts[:min(i + 3, len(parts))])
            break

    return " ".join(parts[:3])


def normalize_payer_name(name: str) -> str:
    normalized = " ".join((name or "").upper().split())
    for pat in PAYER_SUFFIX_PATTERNS:
        normalized = re.sub(pat, "", normalized, flags=re.IGNORECASE)
    return normalized.strip()


def is_business_related(description: str) -> bool:
    desc_l = (description or "").lower()
    return any(kw in desc_l for kw in PAYER_BUSINESS_KEYWORDS)


def is_payer_transfer(tx: BankTransaction) -> bool:
    """False for refund purchases and the wholesale vendors."""
    desc_l = tx.description.lower()
    if "refund purchase" in desc_l:
        return False
    return not any(kw in desc_l for kw in TRANSFER_EXCLUDE_KEYWORDS)


def count_payers(transactions: Sequence[BankTransaction]) -> int:
    """Distinct normalized payers among the transfers analyze_payers looks at."""
    return len({
        normalize_payer_name(extract_payer_name(tx.description))
        for tx in transactions
        if is_payer_transfer(tx)
    })


# ======================================================
# PAYER ANALYSIS
# ======================================================

def analyze_payers(transactions: Sequence[BankTransaction], min_count: int = 2) -> pd.DataFrame:
    """
    Group transfers by normalized payer and keep the regular ones (>= min_count
    transfers) plus any payer with a business signal. Sorted by count, descending.
    Refund purchases and the wholesale vendors are left out.
    """
    rows = []
    for tx in transactions:
        if not is_payer_transfer(tx):
            continue
        raw_name = extract_payer_name(tx.description)
        rows.append({
            "Payer": normalize_payer_name(raw_name),
            "Payer_Raw": raw_name,
            "Amount": tx.amount,
            "Is_Business": is_business_related(tx.description),
            "Transaction": tx,
        })

    if not rows:
        return pd.DataFrame(columns=PAYER_COLUMNS)

    df = pd.DataFrame(rows)
    grouped = df.groupby("Payer", sort=False).agg(
        Count=("Amount", "size"),
        Total=("Amount", decimal_sum),
        Is_Business=("Is_Business", "any"),
        Name_Variants=("Payer_Raw", lambda s: list(dict.fromkeys(s))),
        Transactions=("Transaction", list),
    ).reset_index()

    grouped["Average"] = [t / int(c) for t, c in zip(grouped["Total"], grouped["Count"])]
    grouped = grouped[(grouped["Count"] >= min_count) | grouped["Is_Business"]]
    grouped = grouped.sort_values("Count", ascending=False, kind="mergesort").reset_index(drop=True)
    return grouped[PAYER_COLUMNS]


def render_payer_report(payers: pd.DataFrame, total_payers: Optional[int] = None) -> str:
    is_business = payers["Is_Business"].astype(bool)
    regular = payers[~is_business]
    business = payers[is_business]
    both = business[business["Count"] >= 2]

    lines = ["=" * 80, "转账记录分析结果", "=" * 80, ""]
    if total_payers is not None:
        lines.append(f"排除 joymart/yaochii/dragon bay 后的付款人数: {total_payers}")
    lines += [
        f"固定付款人（多笔转账）或业务相关转入: {len(payers)}",
        "",
        "分类统计:",
        f"  1. 固定付款人多笔转账（>=2笔，非业务）: {len(regular)}",
        f"  2. 业务相关转入（含发票号/公司名等）: {len(business)}",
        f"  3. 两者兼有: {len(both)}",
    ]

    def _section(title: str, df: pd.DataFrame, recent_only: bool) -> None:
        lines.extend(["", "=" * 80, title, "=" * 80])
        for i, (_, p) in enumerate(df.iterrows(), start=1):
            lines.append(f"\n{i}. {p['Payer']}")
            lines.append(f"   转账次数: {p['Count']}")
            lines.append(f"   总金额: ${format_money(p['Total'])}")
            lines.append(f"   平均金额: ${format_money(p['Average'])}")
            if len(p["Name_Variants"]) > 1:
                lines.append(f"   名称变体: {', '.join(p['Name_Variants'])}")
            txs = p["Transactions"][:3] if recent_only else p["Transactions"]
            lines.append("   最近3笔:" if recent_only else "   交易记录:")
            for t in txs:
                desc = t.description[:60] if recent_only else t.description
                lines.append(f"     - {t.date}: ${format_money(t.amount)} - {desc}")

    _section("1. 固定付款人 - 多笔转账（>=2笔）", regular, recent_only=True)
    _section("2. 业务相关转入（含发票号、公司名等关键词）", business, recent_only=False)
    _section("3. 固定付款人 + 业务相关（两者兼有）", both, recent_only=False)

    lines += ["", "=" * 80, "汇总表格（按转账次数排序）", "=" * 80, ""]
    lines.append("付款人名称 | 转账次数 | 总金额 | 平均金额 | 业务相关")
    lines.append("-" * 80)
    for _, p in payers.iterrows():
        flag = "✓" if p["Is_Business"] else ""
        lines.append(
            f"{p['Payer']:<30} | {p['Count']:>4} | "
            f"${format_money(p['Total']):>10} | ${format_money(p['Average']):>8} | {flag}"
        )
    return "\n".join(lines) + "\n"


# ======================================================
# VENDOR GROUPS
# ======================================================

def group_vendor_transfers(transactions: Sequence[BankTransaction]) -> Dict[str, List[BankTransaction]]:
    """
    Split transactions into the known vendor groups, "Other" and refunds.
    Group order: vendor groups as configured, then Other, then Excluded Refunds.
    """
    groups: Dict[str, List[BankTransaction]] = {name: [] for name, _ in VENDOR_GROUPS}
    groups[OTHER_GROUP] = []
    groups[REFUND_GROUP] = []

    for tx in transactions:
        desc_l = tx.description.lower()
        if "refund" in desc_l:
            groups[REFUND_GROUP].append(tx)
            continue
        name = next((n for n, kws in VENDOR_GROUPS if any(k in desc_l for k in kws)), OTHER_GROUP)
        groups[name].append(tx)

    return groups


def render_vendor_summary(
    groups: Dict[str, List[BankTransaction]],
    file_name: str,
    generated_at: Optional[datetime] = None,
) -> str:
    generated_at = generated_at or datetime.now()
    labels = {OTHER_GROUP: "其他", REFUND_GROUP: "排除的退款"}

    sums = {name: decimal_sum(t.amount for t in txs) for name, txs in groups.items()}
    kept_total = decimal_sum(v for k, v in sums.items() if k != REFUND_GROUP)

    lines = [
        "=== 转账记录统计结果 ===",
        "",
        f"处理文件: {file_name}",
        f"处理时间: {generated_at:%Y-%m-%d %H:%M:%S}",
        "",
        "=== 汇总统计 ===",
        "",
    ]
    for name, txs in groups.items():
        lines.append(f"{labels.get(name, name)}: ${format_money(sums[name])} ({len(txs)} 笔交易)")
    lines.append(f"总计 (排除退款): ${format_money(kept_total)}")
    lines.append("")

    for name, txs in groups.items():
        if name == OTHER_GROUP or not txs:
            continue
        lines.append(f"=== {labels.get(name, name)} 交易明细 ===")
        lines.append("")
        for t in txs:
            lines.append(f"{t.date} | ${format_money(t.amount)} | {t.description}")
        lines.append("")

    return "\n".join(lines) + "\n"
