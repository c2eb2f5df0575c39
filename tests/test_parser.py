#!/usr/bin/env python3
"""
test_parser.py

Unit tests for bookkeeping.parser and bookkeeping.io

Tests:
- Alipay data lines (tab head, comma tail, quoted commas)
- Boilerplate and header skipping, expense/success filtering
- Lenient amounts
- CBA lines, header row, warnings, empty statements
- Money string parsing
"""

import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from decimal import Decimal
from pathlib import Path
import sys

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from bookkeeping.io import read_statement_lines
from bookkeeping.parser import (
    StatementParseError,
    is_alipay_boilerplate,
    parse_alipay_line,
    parse_alipay_records,
    parse_amount,
    parse_bank_line,
    parse_bank_statement,
)
from bookkeeping.records import Direction, Status


def alipay_line(txid, order, product, amount, direction="支出", status="交易成功",
                source="支付宝网站", counterparty="烘焙用品店"):
    return (
        f"{txid}\t{order}\t,2025-01-02 10:00:00,2025-01-02 10:00:05,2025-01-02 10:00:05,"
        f"{source},即时到账交易,{counterparty},{product},{amount},{direction},{status},"
    )


HEADER = [
    "支付宝交易记录明细查询",
    "账号:[test@example.com]",
    "起始日期:[2025-01-01 00:00:00]    终止日期:[2025-01-31 23:59:59]",
    "---------------------------------交易记录明细列表------------------------------------",
    "交易号\t商家订单号\t,交易创建时间,付款时间,最近修改时间,交易来源地,类型,交易对方,商品名称,金额（元）,收/支,交易状态,",
]


class TestAlipayLine(unittest.TestCase):

    def test_fields(self):
        rec = parse_alipay_line(alipay_line("2025010222001", "T200P1", "高筋面粉 5kg", "45.80"))
        self.assertIsNotNone(rec)
        self.assertEqual(rec.transaction_id, "2025010222001")
        self.assertEqual(rec.order_id, "T200P1")
        self.assertEqual(rec.paid_at, "2025-01-02 10:00:05")
        self.assertEqual(rec.counterparty, "烘焙用品店")
        self.assertEqual(rec.description, "高筋面粉 5kg")
        self.assertEqual(rec.amount, Decimal("45.80"))
        self.assertEqual(rec.direction, Direction.EXPENSE)
        self.assertEqual(rec.status, Status.SUCCESS)
        self.assertTrue(rec.is_successful_expense)

    def test_quoted_product_keeps_commas(self):
        rec = parse_alipay_line(alipay_line("1", "A1", '"黄油,淡奶油 组合装"', "88.00"))
        self.assertEqual(rec.description, "黄油,淡奶油 组合装")
        self.assertEqual(rec.amount, Decimal("88.00"))

    def test_order_id_leading_comma_stripped(self):
        rec = parse_alipay_line(alipay_line("1", ",  A1", "面粉", "1.00"))
        self.assertEqual(rec.order_id, "A1")

    def test_unreadable_amount_is_zero(self):
        rec = parse_alipay_line(alipay_line("1", "A1", "面粉", "abc"))
        self.assertEqual(rec.amount, Decimal("0"))

    def test_unbalanced_quote_in_product_keeps_record(self):
        rec = parse_alipay_line(alipay_line("1", "A1", '"加厚 烘焙油纸 30cm', "12.00"))
        self.assertIsNotNone(rec)
        self.assertEqual(rec.description, '"加厚 烘焙油纸 30cm')
        self.assertEqual(rec.amount, Decimal("12.00"))
        self.assertTrue(rec.is_successful_expense)

    def test_too_few_fields(self):
        self.assertIsNone(parse_alipay_line("1\tA1\t,2025-01-02,面粉,12.00"))
        self.assertIsNone(parse_alipay_line("no tabs here"))

    def test_income_and_pending(self):
        income = parse_alipay_line(alipay_line("1", "A1", "转账", "10.00", direction="收入"))
        self.assertEqual(income.direction, Direction.INCOME)
        closed = parse_alipay_line(alipay_line("2", "A2", "面粉", "10.00", status="交易关闭"))
        self.assertEqual(closed.status, Status.OTHER)
        self.assertFalse(closed.is_successful_expense)

    def test_boilerplate(self):
        for line in ["", "------------", "共12笔记录", "已收入:0笔,0.00元", "导出时间:[2025-02-01 10:00:00]"]:
            with self.subTest(line=line):
                self.assertTrue(is_alipay_boilerplate(line))
        self.assertFalse(is_alipay_boilerplate(alipay_line("1", "A1", "面粉", "1.00")))


class TestAlipayRecords(unittest.TestCase):

    def test_header_skipped_and_filters_applied(self):
        lines = HEADER + [
            alipay_line("1", "A1", "高筋面粉 5kg", "45.80"),
            alipay_line("2", "A2", "退款", "10.00", direction="收入"),
            alipay_line("3", "A3", "黄油", "20.00", status="交易关闭"),
            alipay_line("4", "A4", "压面机 商用", '"5,000.00"'),
            "------------------------------------------------------------------------------------",
            "共4笔记录",
            "导出时间:[2025-02-01 10:00:00]",
            "",
        ]
        records = parse_alipay_records(lines)
        self.assertEqual([r.transaction_id for r in records], ["1", "4"])
        self.assertEqual(records[1].amount, Decimal("5000.00"))

    def test_keep_all_directions(self):
        lines = HEADER + [
            alipay_line("1", "A1", "面粉", "1.00"),
            alipay_line("2", "A2", "退款", "10.00", direction="收入"),
        ]
        self.assertEqual(len(parse_alipay_records(lines, expenses_only=False)), 2)

    def test_unreadable_line_warns(self):
        lines = HEADER + [
            alipay_line("1", "A1", "面粉", "1.00"),
            "2\tA2\t,2025-01-02,面粉,12.00",
            "共2笔记录",
        ]
        buf = io.StringIO()
        with redirect_stdout(buf):
            records = parse_alipay_records(lines)
        self.assertEqual(len(records), 1)
        out = buf.getvalue()
        self.assertIn("[WARNING] Skipping line 7", out)
        self.assertNotIn("line 8", out)

    def test_custom_header_lines(self):
        lines = [alipay_line("1", "A1", "面粉", "1.00")]
        self.assertEqual(len(parse_alipay_records(lines, header_lines=0)), 1)
        self.assertEqual(parse_alipay_records(lines), [])


class TestBankStatement(unittest.TestCase):

    def test_line(self):
        tx = parse_bank_line('01/02/2025,"-150.00","WOOLWORTHS 123","+1,000.00"')
        self.assertEqual(tx.date, "01/02/2025")
        self.assertEqual(tx.amount, Decimal("-150.00"))
        self.assertEqual(tx.description, "WOOLWORTHS 123")
        self.assertEqual(tx.balance, "1,000.00")
        self.assertEqual(tx.direction, Direction.EXPENSE)
        self.assertEqual(tx.magnitude, Decimal("150.00"))

    def test_line_without_balance(self):
        tx = parse_bank_line('01/02/2025,+500.00,Fast Transfer From JOHN')
        self.assertEqual(tx.amount, Decimal("500.00"))
        self.assertEqual(tx.balance, "")

    def test_bad_lines(self):
        for line in ["", "just text", '01/02/2025,"abc","SHOP"', ',"-1.00","SHOP"']:
            with self.subTest(line=line):
                self.assertIsNone(parse_bank_line(line))

    def test_statement_skips_header_silently_and_warns_later(self):
        lines = [
            "Date,Amount,Description,Balance",
            '01/02/2025,"-150.00","WOOLWORTHS 123","+1000.00"',
            "",
            "garbage",
            '02/02/2025,"+500.00","Fast Transfer From JOHN SMITH","+1500.00"',
        ]
        buf = io.StringIO()
        with redirect_stdout(buf):
            txs = parse_bank_statement(lines)
        self.assertEqual(len(txs), 2)
        out = buf.getvalue()
        self.assertIn("[WARNING] Skipping line 4", out)
        self.assertNotIn("line 1", out)

    def test_empty_statement_raises(self):
        with self.assertRaises(StatementParseError):
            parse_bank_statement(["Date,Amount,Description", ""], warn=False)


class TestParseAmount(unittest.TestCase):

    def test_values(self):
        cases = {
            "3,610.00": Decimal("3610.00"),
            "+12.5": Decimal("12.5"),
            "¥ 8.80": Decimal("8.80"),
            "(45.00)": Decimal("-45.00"),
            "1.234,56": Decimal("1234.56"),
            "12,50": Decimal("12.50"),
            "12,5": Decimal("12.5"),
            "1.234,5": Decimal("1234.5"),
            "1,234": Decimal("1234"),
            "-7": Decimal("-7"),
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(parse_amount(raw), expected)

    def test_unreadable(self):
        for raw in ["", None, "abc", "NaN", "-"]:
            with self.subTest(raw=raw):
                self.assertIsNone(parse_amount(raw))


class TestReadStatementLines(unittest.TestCase):

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_bom_and_crlf(self):
        p = self.test_dir / "in.csv"
        p.write_bytes("\ufeffa,b\r\nc,d\r\n".encode("utf-8"))
        self.assertEqual(read_statement_lines(p), ["a,b", "c,d", ""])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            read_statement_lines(self.test_dir / "missing.csv")


if __name__ == "__main__":
    unittest.main()
