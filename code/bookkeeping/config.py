from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

# Business judgement calls carried over from the bookkeeping workflow.
# Equipment bought for less than this is booked as a consumable.
EQUIPMENT_MIN_AMOUNT = Decimal("300")
# Bank debits at or above this with a tax/government token are company costs.
LARGE_AMOUNT_THRESHOLD = Decimal("1000")

ALIPAY_HEADER_LINES = 5

DEFAULT_ALIPAY_FILE = "alipay_record_20251117_0831.txt"
DEFAULT_TRANSFER_FILE = "CSVData.csv"

# Fixed report names (read by the accountant, keep stable)
RAW_CONSUMABLE_LIST = "原材料耗材订单列表.csv"
STATISTICS_REPORT = "处理统计.txt"
OVERSEAS_LIST = "海外支付订单列表.csv"
EQUIPMENT_LIST = "设备订单列表.csv"
EXCLUDED_LIST = "排除订单列表.csv"
EXCEL_WORKBOOK = "分类汇总.xlsx"
TRANSFER_REPORT = "统计结果.txt"


@dataclass(frozen=True)
class Settings:
    input_path: Path
    output_dir: Path
    header_lines: int = ALIPAY_HEADER_LINES

    def output(self, name: str) -> Path:
        return self.output_dir / name


def build_settings(
    input_path: str,
    output_dir: Optional[str] = None,
    header_lines: int = ALIPAY_HEADER_LINES,
) -> Settings:
    src = Path(input_path)
    # Reports land next to the statement unless told otherwise
    out = Path(output_dir) if output_dir else src.resolve().parent
    return Settings(input_path=src, output_dir=out, header_lines=header_lines)
