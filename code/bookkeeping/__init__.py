"""
Bookkeeping module: keyword classification of bakery purchase and bank statements.
"""

from .classifier import classify, classify_bank, classify_record
from .keywords import DEFAULT_RULES, KeywordRuleSet
from .parser import (
    StatementParseError,
    parse_alipay_line,
    parse_alipay_records,
    parse_amount,
    parse_bank_line,
    parse_bank_statement,
)
from .records import (
    BankClassificationResult,
    BankTransaction,
    Category,
    ClassificationResult,
    Confidence,
    Direction,
    ExcludeType,
    Party,
    Status,
    TransactionRecord,
    TxnType,
)

__all__ = [
    "classify",
    "classify_bank",
    "classify_record",
    "DEFAULT_RULES",
    "KeywordRuleSet",
    "StatementParseError",
    "parse_alipay_line",
    "parse_alipay_records",
    "parse_amount",
    "parse_bank_line",
    "parse_bank_statement",
    "BankClassificationResult",
    "BankTransaction",
    "Category",
    "ClassificationResult",
    "Confidence",
    "Direction",
    "ExcludeType",
    "Party",
    "Status",
    "TransactionRecord",
    "TxnType",
]
