"""
Pytest configuration file.

Puts the project directory on the Python path so the flat modules import
during test runs, and provides builders for in-memory attendance workbooks.
"""
import io
import os
import sys

import pytest
from openpyxl import Workbook

# Add the current directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

TEMPLATE_NAME = "ACG_식대 정리_Template_2025년 상반기_{}.xlsx"


def build_workbook(rows, sheet_name="내역", first_row=3):
    """
    Build an .xlsx in memory laid out like the upload template.

    Each row is a tuple (year, month, work_type, attendance, amount) written to
    columns B, C, F, H and J starting at ``first_row``. None leaves a cell empty.

    Returns:
        bytes: The saved workbook
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    for offset, (year, month, work_type, attendance, amount) in enumerate(rows):
        row = first_row + offset
        for column, value in zip(("B", "C", "F", "H", "J"), (year, month, work_type, attendance, amount)):
            if value is not None:
                sheet[f"{column}{row}"] = value
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def month_rows(month=3, work_days=20, holiday_work=1, amounts=(150000,)):
    rows = [(2025, month, "업무일", "근무", None) for _ in range(work_days)]
    rows += [(2025, month, "휴일", "근무", None) for _ in range(holiday_work)]
    rows += [(2025, month, "", "", amount) for amount in amounts]
    return rows


@pytest.fixture
def workbook_bytes():
    return build_workbook(month_rows())


@pytest.fixture
def storage_root(tmp_path):
    """A storage root with two employees uploaded for the first half of 2025."""
    folder = tmp_path / "2025 상반기"
    folder.mkdir()
    for name in ("홍길동", "김철수"):
        (folder / TEMPLATE_NAME.format(name)).write_bytes(build_workbook(month_rows()))
    (folder / "readme.txt").write_text("not a workbook")
    return tmp_path
