"""
parser.py

Turns raw statement lines into typed records.

Two layouts are supported:
- Alipay purchase export: tab-separated head, comma-separated tail with the
  transaction details. Header/footer boilerplate repeats and is skipped.
- CBA bank CSV: date, amount, description, balance (optional), quoted fields.

Per-line problems never abort a run: the line is skipped and, for the bank
layout, a warning is printed.
"""

from __future__ import annotations

import csv
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from .config import ALIPAY_HEADER_LINES
from .records import BankTransaction, Direction, Status, TransactionRecord


class StatementParseError(ValueError):
    """Raised when a statement yields no usable transactions at all."""
    pass


# Alipay sub-field positions inside the comma-separated tail
F_CREATED = 1
F_PAID = 2
F_MODIFIED = 3
F_SOURCE = 4
F_KIND = 5
F_COUNTERPARTY = 6
F_PRODUCT = 7
F_AMOUNT = 8
F_DIRECTION = 9
F_STATUS = 10
MIN_ALIPAY_FIELDS = 11

BOILERPLATE_MARKERS = ("共", "已收入", "待收入", "待支出", "导出时间")
SUCCESS_MARKER = "交易成功"


def _normalize_str(x: object) -> str:
    if x is None:
        return ""
    return str(x).strip()


def _split_quoted(text: str, delimiter: str = ",") -> List[str]:
    """Split one line on `delimiter`, keeping quoted delimiters inside their field."""
    try:
        rows = list(csv.reader([text], delimiter=delimiter, skipinitialspace=True))
    except csv.Error:
        return []
    return rows[0] if rows else []


def parse_amount(x: object) -> Optional[Decimal]:
    """
    Parse money strings like '3,610.00', '+12.5', '¥ 8.80', '(45.00)' or
    '1.234,56' into Decimal. Returns None when no number can be read.
    """
    s = _normalize_str(x)
    if s == "":
        return None

    negative_parens = bool(re.fullmatch(r"\(.*\)", s))
    s = re.sub(r"[^0-9,.\-]", "", s)

    # Decimal separator is whichever of ',' / '.' comes last; a lone comma
    # counts as decimal when followed by one or two digits (12,5 / 12,50).
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        if re.search(r",\d{1,2}$", s) and s.count(",") == 1:
            s = s.replace(",", ".")
        else:
            s = s.replace(",", "")

    try:
        value = Decimal(s)
    except InvalidOperation:
        return None

    if not value.is_finite():
        return None
    return -abs(value) if negative_parens else value


def parse_amount_lenient(x: object) -> Decimal:
    """Lenient policy for purchase exports: an unreadable amount counts as 0."""
    value = parse_amount(x)
    return value if value is not None else Decimal("0")


def _parse_direction(raw: str) -> Direction:
    if "支出" in raw:
        return Direction.EXPENSE
    if "收入" in raw:
        return Direction.INCOME
    return Direction.NEUTRAL


def _parse_status(raw: str) -> Status:
    return Status.SUCCESS if SUCCESS_MARKER in raw else Status.OTHER


def is_alipay_boilerplate(line: str) -> bool:
    """Blank, separator, summary and export-footer lines of the Alipay layout."""
    if not line or line.startswith("-"):
        return True
    if any(marker in line for marker in BOILERPLATE_MARKERS):
        return True
    # "已支出" shows up in the totals footer; data rows carry it only with a success status
    if "已支出" in line and "支出      ,交易成功" not in line:
        return True
    return False


def parse_alipay_line(line: str) -> Optional[TransactionRecord]:
    """
    Parse one Alipay data line.

    Layout: <transaction id> TAB <order id> TAB ,created,paid,modified,source,
    kind,counterparty,product,amount,income/expense,status,...

    Returns None for boilerplate and for lines with too few fields.
    """
    line = _normalize_str(line)
    if is_alipay_boilerplate(line):
        return None

    tab_parts = line.split("\t")
    if len(tab_parts) < 3:
        return None

    transaction_id = tab_parts[0].strip()
    order_id = re.sub(r"^[,\s]+", "", tab_parts[1]).strip()
    rest = [p.strip() for p in _split_quoted(tab_parts[2])]
    if len(rest) < MIN_ALIPAY_FIELDS:
        # An unbalanced quote in the product name makes the csv reader run to
        # the end of the line; fall back to a plain comma split.
        rest = [p.strip() for p in tab_parts[2].split(",")]
    if len(rest) < MIN_ALIPAY_FIELDS:
        return None

    return TransactionRecord(
        transaction_id=transaction_id,
        order_id=order_id,
        created_at=rest[F_CREATED],
        paid_at=rest[F_PAID],
        modified_at=rest[F_MODIFIED],
        source=rest[F_SOURCE],
        kind=rest[F_KIND],
        counterparty=rest[F_COUNTERPARTY],
        description=rest[F_PRODUCT],
        amount=abs(parse_amount_lenient(rest[F_AMOUNT])),
        direction=_parse_direction(rest[F_DIRECTION]),
        status=_parse_status(rest[F_STATUS]),
    )


def parse_alipay_records(
    lines: Iterable[str],
    header_lines: int = ALIPAY_HEADER_LINES,
    expenses_only: bool = True,
    warn: bool = True,
) -> List[TransactionRecord]:
    """
    Parse a whole Alipay export. The first `header_lines` lines are metadata.

    With `expenses_only` (the bookkeeping default) only successful expenses are kept.
    Lines that are neither boilerplate nor a readable record are skipped with a warning.
    """
    records: List[TransactionRecord] = []
    for i, line in enumerate(lines):
        if i < header_lines:
            continue
        rec = parse_alipay_line(line)
        if rec is None:
            if warn and not is_alipay_boilerplate(_normalize_str(line)):
                print(f"[WARNING] Skipping line {i + 1} - too few fields: {line[:60]}")
            continue
        if expenses_only and not rec.is_successful_expense:
            continue
        records.append(rec)
    return records


def parse_bank_line(line: str) -> Optional[BankTransaction]:
    """
    Parse one CBA CSV line: date, amount, description, balance (optional).

    Returns None when there are fewer than 3 columns, the date or amount is
    empty, or the amount is not a number.
    """
    parts = _split_quoted(_normalize_str(line))
    if len(parts) < 3:
        return None

    raw_date = parts[0].strip()
    raw_amount = re.sub(r'[+"]', "", parts[1].strip())
    description = parts[2].strip().replace('"', "")
    balance = re.sub(r'[+"]', "", parts[3].strip()) if len(parts) > 3 else ""

    if not raw_date or not raw_amount:
        return None

    amount = parse_amount(raw_amount)
    if amount is None:
        return None

    return BankTransaction(date=raw_date, amount=amount, description=description, balance=balance)


def parse_bank_statement(lines: Iterable[str], warn: bool = True) -> List[BankTransaction]:
    """
    Parse a CBA export. A leading header row (no numeric amount) is skipped
    silently; later unparseable rows are skipped with a warning.

    Raises:
        StatementParseError: If no transaction could be parsed
    """
    numbered = [(i + 1, ln) for i, ln in enumerate(lines) if ln.strip() != ""]
    transactions: List[BankTransaction] = []

    for pos, (line_no, line) in enumerate(numbered):
        tx = parse_bank_line(line)
        if tx is None:
            if pos > 0 and warn:
                print(f"[WARNING] Skipping line {line_no} - not a transaction row: {line[:60]}")
            continue
        transactions.append(tx)

    if not transactions:
        raise StatementParseError("No valid transactions parsed from CSV.")
    return transactions
