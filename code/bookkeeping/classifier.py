"""
classifier.py

Deterministic, explainable keyword classifier for bakery bookkeeping.

Purchase variant (Alipay), single pass, priority-ordered:
  R01 business software   -> consumable (beats every keyword table)
  R02 overseas payment    -> overseas_payment (bypasses keyword tables)
  R03 empty product name  -> other / absolute
  R04 equipment keyword   -> equipment, or R05 consumable below EQUIPMENT_MIN_AMOUNT
                             (never for items marked disposable)
  R06 raw material        -> raw_material
  R07 consumable          -> consumable
  R08 absolute exclude    -> other / absolute (ambiguous tokens checked against bakery context)
  R09 possibly related    -> other / possibly_related
  R10 fallback            -> other / possibly_related

Bank variant (CBA): income is company income; expenses default to personal
unless a stronger signal matches.

Both variants are pure functions: same input, same result, never raises for
unrecognised text.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from .config import EQUIPMENT_MIN_AMOUNT, LARGE_AMOUNT_THRESHOLD
from .keywords import (
    BUSINESS_EXPENSE_KEYWORDS,
    DEFAULT_RULES,
    GOVERNMENT_KEYWORDS,
    PERSONAL_EXPENSE_KEYWORDS,
    POSSIBLE_SUPPLIER_KEYWORDS,
    REFUND_MARKERS,
    SUPERMARKET_KEYWORDS,
    KeywordRuleSet,
)
from .records import (
    BankClassificationResult,
    Category,
    ClassificationResult,
    Confidence,
    ExcludeType,
    Party,
    TransactionRecord,
    TxnType,
)

Number = Union[Decimal, int, float, str]

# (keyword, text) -> False when the keyword must be ignored for this text
KeywordGuard = Callable[[str, str], bool]


# ======================================================
# HELPERS
# ======================================================

def to_decimal(x: Number) -> Decimal:
    try:
        value = x if isinstance(x, Decimal) else Decimal(str(x).strip())
    except ArithmeticError:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def first_match(
    text: str,
    keywords: Iterable[str],
    guard: Optional[KeywordGuard] = None,
) -> Optional[str]:
    """Return the first keyword contained in `text` whose guard passes."""
    for kw in keywords:
        if kw in text and (guard is None or guard(kw, text)):
            return kw
    return None


def contains_any(text: str, tokens: Iterable[str]) -> bool:
    return any(t in text for t in tokens)


def not_marked(markers: Tuple[str, ...]) -> KeywordGuard:
    """Guard that drops every keyword once the text carries one of `markers`."""
    def guard(kw: str, text: str) -> bool:
        return not contains_any(text, markers)
    return guard


# ======================================================
# RULE TABLE
# ======================================================

@dataclass(frozen=True)
class KeywordRule:
    rule_id: str
    category: Category
    keywords: Tuple[str, ...]
    guard: Optional[KeywordGuard] = None
    label: str = ""


def substantive_rules(rules: KeywordRuleSet) -> Tuple[KeywordRule, ...]:
    """Bakery categories in evaluation order. Equipment first: its terms are the most specific."""
    # Disposable markers block every equipment keyword, not only 模具: a
    # throwaway item is never booked as equipment.
    return (
        KeywordRule("R04_EQUIPMENT", Category.EQUIPMENT, rules.equipment,
                    guard=not_marked(rules.disposable_markers), label="equipment"),
        KeywordRule("R06_RAW_MATERIAL", Category.RAW_MATERIAL, rules.raw_material,
                    label="raw material"),
        KeywordRule("R07_CONSUMABLE", Category.CONSUMABLE, rules.consumable,
                    label="consumable"),
    )


def match_business_software(
    description: str,
    counterparty: str,
    vendors: Iterable[Tuple[str, Optional[str]]],
) -> Optional[str]:
    for product_kw, counterparty_kw in vendors:
        if product_kw not in description:
            continue
        if counterparty_kw is None or counterparty_kw in counterparty:
            return product_kw
    return None


def match_absolute_exclude(
    description: str,
    excludes: Iterable[str],
    ambiguous: Dict[str, Tuple[str, ...]],
) -> Optional[str]:
    """
    First exclude keyword that really applies.

    An ambiguous keyword is skipped when the text also holds one of its bakery
    context phrases; the scan then moves on to the next exclude keyword.
    """
    for kw in excludes:
        if kw not in description:
            continue
        context = ambiguous.get(kw)
        if context and contains_any(description, context):
            continue
        return kw
    return None


# ======================================================
# CLASSIFIER (purchase variant)
# ======================================================

def _other(rule_id: str, explanation: str, exclude_type: ExcludeType) -> ClassificationResult:
    return ClassificationResult(
        category=Category.OTHER,
        rule_id=rule_id,
        explanation=explanation,
        exclude_type=exclude_type,
    )


def classify(
    description: str,
    amount: Number = Decimal("0"),
    counterparty: str = "",
    source: str = "",
    rules: KeywordRuleSet = DEFAULT_RULES,
) -> ClassificationResult:
    desc = description or ""
    counterparty = counterparty or ""
    source = source or ""
    amt = to_decimal(amount)

    # 1) Named SaaS vendors are business costs whatever their listing says
    vendor = match_business_software(desc, counterparty, rules.business_software)
    if vendor:
        return ClassificationResult(
            category=Category.CONSUMABLE,
            rule_id="R01_BUSINESS_SOFTWARE",
            explanation=f"Business software/service vendor: {vendor}",
        )

    # 2) Overseas merchants and cross-border tax lines
    if contains_any(source, rules.overseas_sources) or contains_any(desc, rules.overseas_products):
        return ClassificationResult(
            category=Category.OVERSEAS_PAYMENT,
            rule_id="R02_OVERSEAS_PAYMENT",
            explanation="Overseas payment (external merchant channel or overseas tax line)",
        )

    # 3) Nothing to match against
    if not desc.strip():
        return _other("R03_EMPTY_DESCRIPTION", "Empty product name", ExcludeType.ABSOLUTE)

    # 4-7) Bakery keyword tables, first table with a hit wins
    for rule in substantive_rules(rules):
        kw = first_match(desc, rule.keywords, rule.guard)
        if kw is None:
            continue

        if rule.category is Category.EQUIPMENT and amt < EQUIPMENT_MIN_AMOUNT:
            return ClassificationResult(
                category=Category.CONSUMABLE,
                rule_id="R05_EQUIPMENT_SMALL_TICKET",
                explanation=(
                    f"Equipment keyword '{kw}' with amount {amt:.2f} "
                    f"below {EQUIPMENT_MIN_AMOUNT}: booked as consumable"
                ),
            )

        return ClassificationResult(
            category=rule.category,
            rule_id=rule.rule_id,
            explanation=f"Matched {rule.label} keyword: {kw}",
        )

    # 8) Absolute excludes, only once no bakery keyword matched
    kw = match_absolute_exclude(desc, rules.absolute_exclude, rules.ambiguous_excludes)
    if kw:
        return _other(
            "R08_ABSOLUTE_EXCLUDE",
            f"Contains absolute exclude keyword: {kw}",
            ExcludeType.ABSOLUTE,
        )

    # 9) Weak signals: supermarkets and mixed vendors
    kw = first_match(desc, rules.possibly_related)
    if kw:
        return _other(
            "R09_POSSIBLY_RELATED",
            f"Possibly related (shop/supermarket purchase, check for baking supplies): {kw}",
            ExcludeType.POSSIBLY_RELATED,
        )

    # 10) Fallback: leave the decision to a human
    return _other("R10_NO_MATCH", "no keyword matched", ExcludeType.POSSIBLY_RELATED)


def classify_record(
    record: TransactionRecord,
    rules: KeywordRuleSet = DEFAULT_RULES,
) -> ClassificationResult:
    return classify(
        record.description,
        record.amount,
        counterparty=record.counterparty,
        source=record.source,
        rules=rules,
    )


# ======================================================
# CLASSIFIER (bank variant)
# ======================================================

def is_refund_like(desc_l: str) -> bool:
    return contains_any(desc_l, REFUND_MARKERS)


def classify_bank(amount: Number, description: str) -> BankClassificationResult:
    """
    Classify a signed CBA amount (credits positive) as income/expense/refund
    and company/personal/unknown.

    Conservative for tax purposes: every non-refund credit is company income,
    debits stay personal unless a keyword says otherwise.
    """
    amt = to_decimal(amount)
    desc_l = (description or "").lower()
    refund = is_refund_like(desc_l)

    if amt > 0 and not refund:
        return BankClassificationResult(
            txn_type=TxnType.INCOME,
            party=Party.COMPANY,
            confidence=Confidence.HIGH,
            reason="amount > 0 and not a refund, treated as company income",
        )

    txn_type = TxnType.REFUND if refund else TxnType.EXPENSE

    if contains_any(desc_l, POSSIBLE_SUPPLIER_KEYWORDS):
        return BankClassificationResult(
            txn_type, Party.UNKNOWN, Confidence.MEDIUM,
            "matches possible supplier keyword, requires manual review",
        )

    if contains_any(desc_l, BUSINESS_EXPENSE_KEYWORDS):
        return BankClassificationResult(
            txn_type, Party.COMPANY, Confidence.HIGH,
            "matched business expense keyword",
        )

    if contains_any(desc_l, SUPERMARKET_KEYWORDS):
        return BankClassificationResult(
            txn_type, Party.UNKNOWN, Confidence.MEDIUM,
            "supermarket transaction, requires manual review",
        )

    if contains_any(desc_l, PERSONAL_EXPENSE_KEYWORDS):
        return BankClassificationResult(
            txn_type, Party.PERSONAL, Confidence.HIGH,
            "matched personal expense keyword",
        )

    if abs(amt) >= LARGE_AMOUNT_THRESHOLD and contains_any(desc_l, GOVERNMENT_KEYWORDS):
        return BankClassificationResult(
            txn_type, Party.COMPANY, Confidence.MEDIUM,
            "large amount with government/tax keyword",
        )

    return BankClassificationResult(
        txn_type, Party.PERSONAL, Confidence.LOW,
        "no strong keyword matched, default to personal",
    )
