"""
records.py

Typed transaction records and classification outcomes.

Records are immutable: the parser creates them once, the classifier and the
reporters only read them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    NEUTRAL = "neutral"  # 不计收支


class Status(str, Enum):
    SUCCESS = "success"
    OTHER = "other"


class Category(str, Enum):
    RAW_MATERIAL = "raw_material"
    CONSUMABLE = "consumable"
    EQUIPMENT = "equipment"
    OVERSEAS_PAYMENT = "overseas_payment"
    OTHER = "other"


class ExcludeType(str, Enum):
    ABSOLUTE = "absolute"
    POSSIBLY_RELATED = "possibly_related"


class TxnType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    REFUND = "refund"


class Party(str, Enum):
    COMPANY = "company"
    PERSONAL = "personal"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class TransactionRecord:
    """One Alipay statement line. `amount` is always a non-negative magnitude."""
    transaction_id: str
    order_id: str
    created_at: str
    paid_at: str
    modified_at: str
    source: str
    kind: str
    counterparty: str
    description: str
    amount: Decimal
    direction: Direction
    status: Status

    @property
    def is_successful_expense(self) -> bool:
        return self.direction is Direction.EXPENSE and self.status is Status.SUCCESS


@dataclass(frozen=True)
class BankTransaction:
    """One CBA export row. `amount` is signed: credits positive, debits negative."""
    date: str
    amount: Decimal
    description: str
    balance: str = ""

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def direction(self) -> Direction:
        if self.amount > 0:
            return Direction.INCOME
        if self.amount < 0:
            return Direction.EXPENSE
        return Direction.NEUTRAL


@dataclass(frozen=True)
class ClassificationResult:
    category: Category
    rule_id: str
    explanation: str
    exclude_type: Optional[ExcludeType] = None
    confidence: Optional[Confidence] = None

    @property
    def needs_review(self) -> bool:
        return self.exclude_type is ExcludeType.POSSIBLY_RELATED


@dataclass(frozen=True)
class BankClassificationResult:
    txn_type: TxnType
    party: Party
    confidence: Confidence
    reason: str
