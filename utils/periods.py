import re
from typing import Optional, Tuple

from utils.result import Result

FIRST_HALF = "상반기"
SECOND_HALF = "하반기"

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+")


def get_half_year(month: int) -> str:
    return FIRST_HALF if month <= 6 else SECOND_HALF


def create_folder_name(year: int, month: int) -> str:
    """Storage folder holding the uploads of a half-year, e.g. ``"2025 상반기"``."""
    return f"{year} {get_half_year(month)}"


def parse_leading_int(value: str) -> Optional[int]:
    """Leading integer of a string (``"3월"`` gives 3), or None."""
    match = _INTEGER_RE.match(value)
    if not match:
        return None
    return int(match.group(0))


def validate_query_params(sheet_year: Optional[str], sheet_month: Optional[str]) -> Result[Tuple[int, int]]:
    """
    Validate the ``sheetYear``/``sheetMonth`` query parameters.

    Args:
        sheet_year: Raw year parameter
        sheet_month: Raw month parameter

    Returns:
        Result[Tuple[int, int]]: (year, month) or a 400 failure with a message
    """
    if not sheet_year or not sheet_month:
        return Result.invalid_input("sheetYear와 sheetMonth 파라미터가 필요합니다.")

    year = parse_leading_int(sheet_year)
    month = parse_leading_int(sheet_month)
    if year is None or month is None or month < 1 or month > 12:
        return Result.invalid_input("올바른 연도와 월을 입력해주세요. (월: 1-12)")

    return Result.ok((year, month))
