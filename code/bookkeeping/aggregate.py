"""
aggregate.py

Ledger building and per-category totals.

Amounts stay Decimal end to end so category totals add up to the grand
total to the cent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .classifier import classify_bank, classify_record
from .keywords import DEFAULT_RULES, KeywordRuleSet
from .records import (
    BankClassificationResult,
    BankTransaction,
    Category,
    ClassificationResult,
    ExcludeType,
    Party,
    TransactionRecord,
    TxnType,
)

LEDGER_COLUMNS = [
    "Transaction_ID", "Order_ID", "Pay_Time", "Product_Name", "Amount",
    "Category", "Exclude_Type", "Reason", "Rule_ID", "Source", "Counterparty",
]

BANK_LEDGER_COLUMNS = [
    "Date", "Amount", "Description", "Balance",
    "Type", "Party", "Confidence", "Reason",
]

CATEGORY_ORDER = [c.value for c in Category]
EXCLUDE_ORDER = [t.value for t in ExcludeType]

ZERO = Decimal("0")
CENT = Decimal("0.01")


def decimal_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def percent(part: Decimal, whole: Decimal) -> Optional[Decimal]:
    if whole == 0:
        return None
    return (part / whole * 100).quantize(CENT, rounding=ROUND_HALF_UP)


# ======================================================
# PURCHASE LEDGER
# ======================================================

def build_ledger(
    records: Sequence[TransactionRecord],
    results: Sequence[ClassificationResult],
) -> pd.DataFrame:
    if len(records) != len(results):
        raise ValueError(
            f"Got {len(records)} records but {len(results)} classification results"
        )

    rows = []
    for rec, res in zip(records, results):
        rows.append({
            "Transaction_ID": rec.transaction_id,
            "Order_ID": rec.order_id,
            "Pay_Time": rec.paid_at,
            "Product_Name": rec.description,
            "Amount": rec.amount,
            "Category": res.category.value,
            "Exclude_Type": res.exclude_type.value if res.exclude_type else "",
            "Reason": res.explanation,
            "Rule_ID": res.rule_id,
            "Source": rec.source,
            "Counterparty": rec.counterparty,
        })
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def classify_records(
    records: Sequence[TransactionRecord],
    rules: KeywordRuleSet = DEFAULT_RULES,
) -> pd.DataFrame:
    results = [classify_record(r, rules) for r in records]
    return build_ledger(records, results)


def summarize_categories(ledger: pd.DataFrame) -> pd.DataFrame:
    """
    One row per category in enum order (empty categories included):
    Category, Count, Total (Decimal), Pct (Decimal share of grand total, None if total is 0).
    """
    rows = []
    for cat in CATEGORY_ORDER:
        amounts = ledger.loc[ledger["Category"] == cat, "Amount"]
        rows.append({"Category": cat, "Count": int(len(amounts)), "Total": decimal_sum(amounts)})

    summary = pd.DataFrame(rows, columns=["Category", "Count", "Total"])
    grand_total = decimal_sum(summary["Total"])
    summary["Pct"] = [percent(t, grand_total) for t in summary["Total"]]
    return summary


def grand_totals(summary: pd.DataFrame) -> Dict[str, object]:
    return {"Count": int(summary["Count"].sum()), "Total": decimal_sum(summary["Total"])}


def summarize_excluded(ledger: pd.DataFrame) -> Dict[str, Dict[str, object]]:
    """Count and total per exclude type for rows booked as `other`."""
    other = ledger[ledger["Category"] == Category.OTHER.value]
    out: Dict[str, Dict[str, object]] = {}
    for ex in EXCLUDE_ORDER:
        amounts = other.loc[other["Exclude_Type"] == ex, "Amount"]
        out[ex] = {"Count": int(len(amounts)), "Total": decimal_sum(amounts)}
    return out


# ======================================================
# BANK LEDGER
# ======================================================

def build_bank_ledger(
    transactions: Sequence[BankTransaction],
    results: Sequence[BankClassificationResult],
) -> pd.DataFrame:
    if len(transactions) != len(results):
        raise ValueError(
            f"Got {len(transactions)} transactions but {len(results)} classification results"
        )

    rows = []
    for tx, res in zip(transactions, results):
        rows.append({
            "Date": tx.date,
            "Amount": tx.amount,
            "Description": tx.description,
            "Balance": tx.balance,
            "Type": res.txn_type.value,
            "Party": res.party.value,
            "Confidence": res.confidence.value,
            "Reason": res.reason,
        })
    return pd.DataFrame(rows, columns=BANK_LEDGER_COLUMNS)


def classify_bank_transactions(transactions: Sequence[BankTransaction]) -> pd.DataFrame:
    results = [classify_bank(tx.amount, tx.description) for tx in transactions]
    return build_bank_ledger(transactions, results)


def summarize_parties(ledger: pd.DataFrame) -> Dict[str, Decimal]:
    """
    Income by party (signed amounts) and expense/refund by party (absolute values).
    """
    income = ledger[ledger["Type"] == TxnType.INCOME.value]
    outgoing = ledger[ledger["Type"] != TxnType.INCOME.value]

    def _sum(df: pd.DataFrame, party: Party, absolute: bool = False) -> Decimal:
        amounts: List[Decimal] = df.loc[df["Party"] == party.value, "Amount"].tolist()
        return decimal_sum(abs(a) for a in amounts) if absolute else decimal_sum(amounts)

    return {
        "company_income": _sum(income, Party.COMPANY),
        "personal_income": decimal_sum(
            income.loc[income["Party"] != Party.COMPANY.value, "Amount"]
        ),
        "company_expense": _sum(outgoing, Party.COMPANY, absolute=True),
        "personal_expense": _sum(outgoing, Party.PERSONAL, absolute=True),
        "unknown_expense": _sum(outgoing, Party.UNKNOWN, absolute=True),
    }
