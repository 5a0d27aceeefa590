import io
import logging
import math
import re
import time
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

import pandas as pd
from openpyxl import load_workbook
from openpyxl.worksheet.formula import ArrayFormula
from pydantic import BaseModel, ConfigDict

from utils.periods import parse_leading_int

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "내역"
DEFAULT_DATA_RANGE = "B3:L204"

# Offsets from the first column of the data range (B3:L204 -> B, C, F, H, J)
YEAR_OFFSET = 0
MONTH_OFFSET = 1
WORK_TYPE_OFFSET = 4
ATTENDANCE_OFFSET = 6
AMOUNT_OFFSET = 8

_RANGE_RE = re.compile(r"^([A-Z]+)(\d+):([A-Z]+)(\d+)$")
_DECIMAL_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class SheetNotFoundError(LookupError):
    """The expected sheet is missing from a workbook."""
    def __init__(self, sheet_name: str):
        super().__init__(f"시트 '{sheet_name}'를 찾을 수 없습니다.")
        self.sheet_name = sheet_name


class RangeFormatError(ValueError):
    """The configured cell range is not of the form ``B3:L204``."""
    def __init__(self, cell_range: str):
        super().__init__(f"잘못된 범위 형식: {cell_range}")
        self.cell_range = cell_range


class AttendanceRow(BaseModel):
    """
    One normalized line of an attendance sheet.

    Attributes:
        year: Calendar year of the line
        month: Month (1-12) of the line
        work_type: Day type code, e.g. "업무일" or "휴일"
        attendance: Attendance code, e.g. "근무" or a value containing "휴무"
        amount: Money spent on that line, 0 when the cell is empty or not numeric
    """
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    work_type: str = ""
    attendance: str = ""
    amount: float = 0.0


class CellValue(BaseModel):
    """
    A workbook cell seen from both sides of a formula.

    ``text`` is set for string values, ``result`` for any other computed value
    and ``formula`` for the source of a formula cell. ``resolve`` prefers them
    in that order.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    text: Optional[str] = None
    result: Any = None
    formula: Optional[str] = None

    def resolve(self) -> str:
        if self.text is not None:
            return self.text
        if self.result is not None:
            return _format_result(self.result)
        if self.formula is not None:
            return self.formula
        return ""

    def is_blank(self) -> bool:
        return self.resolve().strip() == ""


EMPTY_CELL = CellValue()


def _format_result(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def resolve_cell(value: Any) -> str:
    """Display text of a plain value or a CellValue, "" for empty cells."""
    if value is None:
        return ""
    if isinstance(value, CellValue):
        return value.resolve()
    if isinstance(value, float) and math.isnan(value):
        return ""
    return _format_result(value)


def column_to_number(column: str) -> int:
    """Excel column letters to a 1-based index (A=1, Z=26, AA=27)."""
    number = 0
    for char in column:
        number = number * 26 + (ord(char) - ord("A") + 1)
    return number


def parse_cell_range(cell_range: str) -> Tuple[int, int, int, int]:
    """
    Parse an inclusive A1 range.

    Returns:
        Tuple[int, int, int, int]: (start_col, start_row, end_col, end_row), 1-based

    Raises:
        RangeFormatError: If the string is not a plain two-corner range
    """
    match = _RANGE_RE.match(cell_range.strip()) if cell_range else None
    if not match:
        raise RangeFormatError(cell_range)
    start_col = column_to_number(match.group(1))
    start_row = int(match.group(2))
    end_col = column_to_number(match.group(3))
    end_row = int(match.group(4))
    if end_col < start_col or end_row < start_row:
        raise RangeFormatError(cell_range)
    return start_col, start_row, end_col, end_row


def _formula_source(raw: Any) -> Optional[str]:
    if isinstance(raw, ArrayFormula):
        raw = raw.text
    if isinstance(raw, str) and raw.startswith("="):
        return raw[1:]
    return None


def _build_cell(computed: Any, raw: Any) -> CellValue:
    formula = _formula_source(raw)
    if computed is None and formula is None:
        computed = raw
    if computed is None and formula is None:
        return EMPTY_CELL
    if isinstance(computed, str):
        return CellValue(text=computed, formula=formula)
    return CellValue(result=computed, formula=formula)


def load_workbook_cells(content: bytes, sheet_name: str = DEFAULT_SHEET_NAME,
                        cell_range: str = DEFAULT_DATA_RANGE) -> pd.DataFrame:
    """
    Read a rectangular range of one sheet into a DataFrame of CellValue.

    The workbook is opened twice: once for the values cached by the last
    spreadsheet application that saved it, once for the formula sources.
    Column labels of the frame are offsets from the first range column.

    Args:
        content: Raw .xlsx bytes
        sheet_name: Sheet holding the attendance lines
        cell_range: Inclusive A1 range of the data block

    Returns:
        pd.DataFrame: One row per sheet row of the range

    Raises:
        RangeFormatError: If ``cell_range`` is malformed
        SheetNotFoundError: If the workbook has no sheet named ``sheet_name``
    """
    start_col, start_row, end_col, end_row = parse_cell_range(cell_range)

    computed_book = formula_book = None
    try:
        computed_book = load_workbook(io.BytesIO(content), data_only=True)
        formula_book = load_workbook(io.BytesIO(content), data_only=False)
        if sheet_name not in computed_book.sheetnames:
            raise SheetNotFoundError(sheet_name)

        bounds = {"min_row": start_row, "max_row": end_row, "min_col": start_col, "max_col": end_col}
        computed_rows = computed_book[sheet_name].iter_rows(values_only=True, **bounds)
        formula_rows = formula_book[sheet_name].iter_rows(values_only=True, **bounds)

        grid = [
            [_build_cell(computed, raw) for computed, raw in zip(computed_row, formula_row)]
            for computed_row, formula_row in zip(computed_rows, formula_rows)
        ]
    finally:
        for book in (computed_book, formula_book):
            if book is not None:
                book.close()

    return pd.DataFrame(grid, columns=range(end_col - start_col + 1))


def _parse_int_cell(cell: Any) -> Optional[int]:
    value = cell.result if isinstance(cell, CellValue) and cell.text is None else None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value)
    return parse_leading_int(resolve_cell(cell))


def _parse_amount(cell: Any) -> float:
    value = cell.result if isinstance(cell, CellValue) and cell.text is None else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else 0.0
    match = _DECIMAL_RE.match(resolve_cell(cell))
    if not match:
        return 0.0
    amount = float(match.group(0))
    return amount if math.isfinite(amount) else 0.0


def _is_missing(cell: Any) -> bool:
    if resolve_cell(cell).strip() == "":
        return True
    # zero year/month counts as absent, like an empty cell
    return isinstance(cell, CellValue) and cell.text is None and cell.result == 0


def _cell_at(values: Tuple[Any, ...], offset: int) -> Any:
    return values[offset] if offset < len(values) else EMPTY_CELL


def extract_rows(frame: pd.DataFrame) -> List[AttendanceRow]:
    """
    Turn the cell frame of a data range into attendance rows.

    Empty rows and rows whose year or month is blank or not an integer are
    skipped without being reported. A missing or non-numeric amount becomes 0.

    Args:
        frame: Frame returned by ``load_workbook_cells``

    Returns:
        List[AttendanceRow]: Rows in sheet order
    """
    rows: List[AttendanceRow] = []
    skipped = 0

    for values in frame.itertuples(index=False, name=None):
        if all(resolve_cell(value).strip() == "" for value in values):
            continue

        year_cell = _cell_at(values, YEAR_OFFSET)
        month_cell = _cell_at(values, MONTH_OFFSET)
        if _is_missing(year_cell) or _is_missing(month_cell):
            skipped += 1
            continue

        year = _parse_int_cell(year_cell)
        month = _parse_int_cell(month_cell)
        if year is None or month is None:
            skipped += 1
            continue

        rows.append(AttendanceRow(
            year=year,
            month=month,
            work_type=resolve_cell(_cell_at(values, WORK_TYPE_OFFSET)),
            attendance=resolve_cell(_cell_at(values, ATTENDANCE_OFFSET)),
            amount=_parse_amount(_cell_at(values, AMOUNT_OFFSET)),
        ))

        if len(rows) <= 3:
            logger.debug("Extracted attendance row", extra={"row": rows[-1].model_dump()})

    logger.info(
        "Extracted attendance rows",
        extra={"extracted_rows": len(rows), "skipped_rows": skipped}
    )
    return rows


def process_excel_file(content: bytes, sheet_name: Optional[str] = None,
                       cell_range: Optional[str] = None) -> List[AttendanceRow]:
    """
    Full extraction pipeline for one uploaded workbook.

    Raises:
        SheetNotFoundError: If the attendance sheet is absent
        RangeFormatError: If the configured range is malformed
    """
    sheet_name = sheet_name or DEFAULT_SHEET_NAME
    cell_range = cell_range or DEFAULT_DATA_RANGE

    start_time = time.time()
    frame = load_workbook_cells(content, sheet_name, cell_range)
    rows = extract_rows(frame)
    logger.info(
        "Processed attendance workbook",
        extra={
            "sheet_name": sheet_name,
            "cell_range": cell_range,
            "row_count": len(rows),
            "read_time_seconds": f"{time.time() - start_time:.2f}"
        }
    )
    return rows
