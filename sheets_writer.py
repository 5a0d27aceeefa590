import logging
from typing import Any, List, Sequence

import gspread
from gspread.exceptions import GSpreadException, WorksheetNotFound
from gspread.utils import ValueInputOption

from balance_calculator import EmployeeResult

logger = logging.getLogger(__name__)

HEADER_ROW = ["No.", "성명", "근무일", "휴일", "주말근무", "총금액", "사용금액", "잔여금액", "정산여부", "엑셀파일"]
HEADER_RANGE = "A3:J3"
FIRST_DATA_ROW = 4
LINK_LABEL = "엑셀파일 다운로드"


class SheetsUpdateError(RuntimeError):
    """Writing results to the spreadsheet failed."""


def sheet_title(sheet_year: int, sheet_month: int) -> str:
    return f"{sheet_year}년 {sheet_month}월"


def hyperlink_formula(url: str, label: str = LINK_LABEL) -> str:
    escaped = url.replace('"', '""')
    return f'=HYPERLINK("{escaped}", "{label}")'


def result_to_row(index: int, result: EmployeeResult) -> List[Any]:
    return [
        index,
        result.name,
        result.work_day,
        result.holiday,
        result.weekend_work,
        result.total,
        result.used_amount,
        result.balance,
        "",
        hyperlink_formula(result.download_url),
    ]


class GoogleSheetsWriter:
    """
    Writes monthly results into one sheet per month of a shared spreadsheet.

    The month sheet is created with a header row on row 3 when missing; results
    start on row 4.
    """

    def __init__(self, client: gspread.Client, spreadsheet_id: str):
        self.client = client
        self.spreadsheet_id = spreadsheet_id

    def _spreadsheet(self) -> gspread.Spreadsheet:
        return self.client.open_by_key(self.spreadsheet_id)

    def ensure_sheet(self, spreadsheet: gspread.Spreadsheet, title: str) -> gspread.Worksheet:
        try:
            return spreadsheet.worksheet(title)
        except WorksheetNotFound:
            logger.info("Creating result sheet", extra={"sheet_title": title})

        worksheet = spreadsheet.add_worksheet(title=title, rows=1000, cols=len(HEADER_ROW))
        worksheet.update(
            values=[HEADER_ROW],
            range_name=HEADER_RANGE,
            value_input_option=ValueInputOption.user_entered,
        )
        return worksheet

    def write_results(self, results: Sequence[EmployeeResult], sheet_year: int, sheet_month: int) -> int:
        """
        Create the month sheet if needed and write one row per employee.

        Args:
            results: Results in display order
            sheet_year: Year of the month sheet
            sheet_month: Month of the month sheet

        Returns:
            int: Number of rows written

        Raises:
            SheetsUpdateError: If the Sheets API rejects any call
        """
        title = sheet_title(sheet_year, sheet_month)
        values = [result_to_row(index, result) for index, result in enumerate(results, start=1)]
        if not values:
            return 0

        last_row = FIRST_DATA_ROW + len(values) - 1
        range_name = f"A{FIRST_DATA_ROW}:J{last_row}"
        try:
            worksheet = self.ensure_sheet(self._spreadsheet(), title)
            worksheet.update(
                values=values,
                range_name=range_name,
                value_input_option=ValueInputOption.user_entered,
            )
        except GSpreadException as e:
            raise SheetsUpdateError(f"Google Sheets 업데이트 실패: {e}") from e

        logger.info(
            "Updated result sheet",
            extra={"spreadsheet_id": self.spreadsheet_id, "sheet_title": title,
                   "range_name": range_name, "updated_rows": len(values)}
        )
        return len(values)
