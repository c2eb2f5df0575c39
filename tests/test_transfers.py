#!/usr/bin/env python3
"""
test_transfers.py

Unit tests for bookkeeping.transfers (payer analysis and vendor groups)
"""

import unittest
from datetime import datetime
from decimal import Decimal
from pathlib import Path
import sys

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from bookkeeping.records import BankTransaction
from bookkeeping.transfers import (
    OTHER_GROUP,
    REFUND_GROUP,
    analyze_payers,
    count_payers,
    extract_payer_name,
    group_vendor_transfers,
    is_business_related,
    is_payer_transfer,
    normalize_payer_name,
    render_payer_report,
    render_vendor_summary,
)


def tx(description, amount, date="01/03/2025"):
    return BankTransaction(date=date, amount=Decimal(amount), description=description)


class TestPayerNames(unittest.TestCase):

    def test_extract(self):
        cases = {
            "MING HUANG INV20250529001 Joymart": "MING HUANG INV20250529001",
            "YAOCHII PTY LTD Yaochii": "YAOCHII PTY LTD",
            "Fast Transfer From MISS JIEXING YI Jiexing": "MISS JIEXING YI",
            "Direct Credit 123456 ACME PTY LTD INV001": "ACME PTY LTD",
            "Transfer from BOB": "BOB",
            "": "",
        }
        for desc, expected in cases.items():
            with self.subTest(desc=desc):
                self.assertEqual(extract_payer_name(desc), expected)

    def test_normalize_strips_reference_noise(self):
        self.assertEqual(normalize_payer_name("MING HUANG INV20250529001"), "MING HUANG")
        self.assertEqual(normalize_payer_name("anna  lee cake order"), "ANNA LEE")
        self.assertEqual(normalize_payer_name("LILY CHEN 32F"), "LILY CHEN")

    def test_business_signal(self):
        self.assertTrue(is_business_related("ACME PTY LTD"))
        self.assertTrue(is_business_related("JOHN INV0042"))
        self.assertFalse(is_business_related("Fast Transfer From ANNA LEE"))


class TestAnalyzePayers(unittest.TestCase):

    def setUp(self):
        self.transactions = [
            tx("Fast Transfer From ANNA LEE cake", "50.00", "01/03/2025"),
            tx("Fast Transfer From ANNA LEE", "70.00", "05/03/2025"),
            tx("Transfer from BOB SMITH", "20.00"),
            tx("Direct Credit 123456 ACME PTY LTD INV001", "300.00"),
            tx("Fast Transfer From JOYMART", "999.00"),
            tx("Refund Purchase KMART", "15.00"),
        ]

    def test_regular_and_business_payers(self):
        payers = analyze_payers(self.transactions)
        self.assertEqual(list(payers["Payer"]), ["ANNA LEE", "ACME PTY LTD"])

        anna = payers.iloc[0]
        self.assertEqual(anna["Count"], 2)
        self.assertEqual(anna["Total"], Decimal("120.00"))
        self.assertEqual(anna["Average"], Decimal("60.00"))
        self.assertFalse(anna["Is_Business"])
        self.assertEqual(len(anna["Name_Variants"]), 2)

        self.assertTrue(payers.iloc[1]["Is_Business"])

    def test_min_count(self):
        payers = analyze_payers(self.transactions, min_count=1)
        self.assertIn("BOB SMITH", list(payers["Payer"]))

    def test_count_payers_uses_same_filter(self):
        self.assertEqual(count_payers(self.transactions), 3)
        self.assertFalse(is_payer_transfer(tx("Fast Transfer From JOYMART", "1.00")))
        self.assertFalse(is_payer_transfer(tx("Refund Purchase KMART", "1.00")))
        self.assertTrue(is_payer_transfer(tx("Transfer from BOB SMITH", "1.00")))

    def test_debits_are_grouped_too(self):
        payers = analyze_payers([
            tx("Transfer from BOB SMITH", "20.00"),
            tx("Transfer from BOB SMITH", "-5.00"),
        ])
        self.assertEqual(list(payers["Payer"]), ["BOB SMITH"])
        self.assertEqual(payers.iloc[0]["Total"], Decimal("15.00"))

    def test_no_payers(self):
        payers = analyze_payers([tx("Fast Transfer From JOYMART", "1.00")])
        self.assertTrue(payers.empty)

    def test_report(self):
        text = render_payer_report(analyze_payers(self.transactions), total_payers=3)
        self.assertIn("ANNA LEE", text)
        self.assertIn("转账次数: 2", text)
        self.assertIn("总金额: $120.00", text)
        self.assertIn("平均金额: $60.00", text)
        self.assertIn("付款人数: 3", text)


class TestVendorGroups(unittest.TestCase):

    def setUp(self):
        self.groups = group_vendor_transfers([
            tx("Fast Transfer From JOYMART", "100.00"),
            tx("YAOCHII PTY LTD Yaochii", "50.00"),
            tx("Dragon Bay Trading", "30.00"),
            tx("Refund Purchase JOYMART", "-10.00"),
            tx("Fast Transfer From ANNA LEE", "70.00"),
        ])

    def test_grouping(self):
        self.assertEqual(
            list(self.groups),
            ["Joymart/Yaochii", "Dragon Bay", OTHER_GROUP, REFUND_GROUP],
        )
        self.assertEqual(len(self.groups["Joymart/Yaochii"]), 2)
        self.assertEqual(len(self.groups["Dragon Bay"]), 1)
        self.assertEqual(len(self.groups[OTHER_GROUP]), 1)
        self.assertEqual(len(self.groups[REFUND_GROUP]), 1)

    def test_summary(self):
        text = render_vendor_summary(
            self.groups, "CSVData.csv", generated_at=datetime(2025, 1, 2, 3, 4, 5)
        )
        self.assertIn("处理文件: CSVData.csv", text)
        self.assertIn("处理时间: 2025-01-02 03:04:05", text)
        self.assertIn("Joymart/Yaochii: $150.00 (2 笔交易)", text)
        self.assertIn("总计 (排除退款): $250.00", text)
        self.assertIn("=== 排除的退款 交易明细 ===", text)
        self.assertNotIn("=== 其他 交易明细 ===", text)


if __name__ == "__main__":
    unittest.main()
