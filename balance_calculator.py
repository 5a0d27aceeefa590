import logging
from typing import List, Mapping, Optional, Sequence, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from attendance_extractor import AttendanceRow
from utils.file_names import NamePolicy, normalize_employee_name

logger = logging.getLogger(__name__)

DAILY_AMOUNT = 10000

WORK_DAY_CODE = "업무일"
HOLIDAY_TYPE_CODE = "휴일"
WORKED_CODE = "근무"
DAY_OFF_MARKER = "휴무"

ROW_COLUMNS = ["year", "month", "work_type", "attendance", "amount"]

RowsLike = Union[pd.DataFrame, Sequence[AttendanceRow]]
Number = Union[int, float]


class EmployeeResult(BaseModel):
    """
    Stipend figures of one employee for the target month.

    Attributes:
        name: Display name derived from the uploaded file name
        work_day: Business days in the month
        holiday: Days whose attendance is marked as off
        weekend_work: Holiday-type days actually worked
        total: Entitlement, (work_day + weekend_work - holiday) * daily amount
        used_amount: Money spent in the month
        balance: total - used_amount, negative on overspend
        download_url: Link to the source workbook
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    work_day: int = 0
    holiday: int = 0
    weekend_work: int = 0
    total: Number = 0
    used_amount: Number = 0
    balance: Number = 0
    download_url: str = ""


def as_number(value: float) -> Number:
    """Integral amounts as int so they serialize as 210000, not 210000.0."""
    return int(value) if float(value).is_integer() else float(value)


def rows_to_frame(rows: RowsLike) -> pd.DataFrame:
    """Attendance rows as a DataFrame with one column per field."""
    if isinstance(rows, pd.DataFrame):
        return rows
    frame = pd.DataFrame([row.model_dump() for row in rows], columns=ROW_COLUMNS)
    frame["amount"] = pd.to_numeric(frame["amount"]).astype(float)
    return frame


def _month_frame(rows: RowsLike, target_month: int) -> pd.DataFrame:
    frame = rows_to_frame(rows)
    return frame[frame["month"] == target_month]


def calculate_work_days(rows: RowsLike, target_month: int) -> int:
    monthly = _month_frame(rows, target_month)
    count = int((monthly["work_type"] == WORK_DAY_CODE).sum())
    logger.debug("Counted work days", extra={"target_month": target_month, "count": count})
    return count


def calculate_weekend_work(rows: RowsLike, target_month: int) -> int:
    monthly = _month_frame(rows, target_month)
    worked_holidays = (monthly["work_type"] == HOLIDAY_TYPE_CODE) & (monthly["attendance"] == WORKED_CODE)
    count = int(worked_holidays.sum())
    logger.debug("Counted holiday work", extra={"target_month": target_month, "count": count})
    return count


def calculate_holidays(rows: RowsLike, target_month: int) -> int:
    monthly = _month_frame(rows, target_month)
    days_off = monthly["attendance"].astype(str).str.contains(DAY_OFF_MARKER, regex=False)
    count = int(days_off.sum())
    logger.debug("Counted days off", extra={"target_month": target_month, "count": count})
    return count


def calculate_used_amount(rows: RowsLike, target_month: int) -> float:
    """Sum of every amount in the target month, whatever the day type."""
    monthly = _month_frame(rows, target_month)
    return float(monthly["amount"].sum()) if len(monthly) else 0.0


def calculate_total_amount(work_days: int, weekend_work: int, holidays: int,
                           daily_amount: int = DAILY_AMOUNT) -> Number:
    return (work_days + weekend_work - holidays) * daily_amount


def calculate_employee(
    rows: RowsLike,
    employee_name: str,
    target_month: int,
    download_url: str = "",
    target_year: Optional[int] = None,
    daily_amount: int = DAILY_AMOUNT,
    name_policy: NamePolicy = NamePolicy.TEMPLATE,
) -> EmployeeResult:
    """
    Compute the stipend result of one employee.

    Args:
        rows: Every attendance row extracted from the employee's workbook
        employee_name: Raw identifier, usually the uploaded file name
        target_month: Month (1-12) to compute
        download_url: Link to the source workbook
        target_year: Year used to strip the period template prefix from the name
        daily_amount: Stipend per entitled day
        name_policy: How the display name is derived

    Returns:
        EmployeeResult: Counts, entitlement, spend and balance
    """
    frame = rows_to_frame(rows)
    work_day = calculate_work_days(frame, target_month)
    weekend_work = calculate_weekend_work(frame, target_month)
    holiday = calculate_holidays(frame, target_month)
    used_amount = as_number(calculate_used_amount(frame, target_month))
    total = as_number(calculate_total_amount(work_day, weekend_work, holiday, daily_amount))

    result = EmployeeResult(
        name=normalize_employee_name(employee_name, target_year, target_month, name_policy),
        work_day=work_day,
        holiday=holiday,
        weekend_work=weekend_work,
        total=total,
        used_amount=used_amount,
        balance=as_number(total - used_amount),
        download_url=download_url,
    )
    logger.info(
        "Calculated employee stipend",
        extra={"employee": result.name, "target_month": target_month, "row_count": len(frame),
               **result.model_dump(exclude={"name", "download_url"})}
    )
    return result


def calculate_all_employees(
    employee_rows: Mapping[str, RowsLike],
    download_urls: Mapping[str, str],
    target_month: int,
    target_year: Optional[int] = None,
    daily_amount: int = DAILY_AMOUNT,
    name_policy: NamePolicy = NamePolicy.TEMPLATE,
) -> List[EmployeeResult]:
    """
    Compute every employee of a batch and order them by display name.

    An employee with no link in ``download_urls`` gets an empty link. The sort
    is stable, so employees sharing a display name keep their input order.
    """
    results = [
        calculate_employee(
            rows,
            employee_name,
            target_month,
            download_url=download_urls.get(employee_name, ""),
            target_year=target_year,
            daily_amount=daily_amount,
            name_policy=name_policy,
        )
        for employee_name, rows in employee_rows.items()
    ]
    return sorted(results, key=lambda result: (result.name.casefold(), result.name))
