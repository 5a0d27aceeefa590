import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from attendance_extractor import AttendanceRow, process_excel_file
from balance_calculator import EmployeeResult, calculate_all_employees
from config import AppContext
from storage import StorageFileInfo
from utils.file_names import extract_employee_name
from utils.log_context import LogContext
from utils.periods import create_folder_name
from utils.result import Result

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FailedFile(_CamelModel):
    file_name: str
    reason: str


class EmployeeFile(BaseModel):
    """Rows and link of one successfully processed workbook."""
    file_name: str
    rows: List[AttendanceRow]
    download_url: str = ""


class CalculationResponse(_CamelModel):
    """
    Body of a successful calculation.

    Attributes:
        results: One result per processed workbook, sorted by name
        folder_name: Storage folder of the period
        processed_files: Number of workbooks that were processed
        failed_files: Workbooks skipped because of an error, with the reason
        google_sheets_updated: Whether the results reached the spreadsheet
        google_sheets_error: Why the spreadsheet was not updated
    """
    results: List[EmployeeResult]
    folder_name: str
    processed_files: int
    failed_files: List[FailedFile] = Field(default_factory=list)
    google_sheets_updated: bool = False
    google_sheets_error: Optional[str] = None


class StorageListing(_CamelModel):
    folder_name: str
    file_count: int
    files: List[StorageFileInfo]


class CalculationService:
    """
    Runs the monthly stipend calculation for a period folder.

    Each workbook is processed on its own; a workbook that cannot be read is
    reported in the response and the others still count.
    """

    def __init__(self, context: AppContext):
        self.context = context

    def _process_file(self, file_name: str) -> Result[EmployeeFile]:
        config = self.context.config
        try:
            content = self.context.store.download_file(file_name)
            rows = process_excel_file(content, config.sheet_name, config.data_range)
            download_url = self.context.store.get_download_url(file_name)
        except Exception as e:
            logger.error(
                "Failed to process workbook",
                extra={"file_name": file_name, "error": str(e), "error_type": type(e).__name__}
            )
            return Result.fail(f"{type(e).__name__}: {e}")

        logger.info(
            "Processed workbook",
            extra={"file_name": file_name, "employee": extract_employee_name(file_name), "row_count": len(rows)}
        )
        return Result.ok(EmployeeFile(
            file_name=file_name,
            rows=rows,
            download_url=download_url,
        ))

    def _update_sheet(self, results: List[EmployeeResult], year: int, month: int, request_id: str):
        writer = self.context.sheets_writer
        if writer is None:
            return False, "SPREADSHEET_ID not configured"
        try:
            with LogContext("google sheets update", request_id=request_id, results_count=len(results)):
                writer.write_results(results, year, month)
        except Exception as e:
            return False, str(e)
        return True, None

    def calculate(self, year: int, month: int) -> Result[CalculationResponse]:
        """
        Compute every employee of the period folder for ``year``/``month``.

        Args:
            year: Target year
            month: Target month (1-12)

        Returns:
            Result[CalculationResponse]: 404 when the folder has no workbook,
            500 when no workbook could be processed
        """
        request_id = str(uuid.uuid4())[:8]
        folder_name = create_folder_name(year, month)
        log_context = {"request_id": request_id, "folder_name": folder_name, "year": year, "month": month}
        logger.info("Processing stipend calculation", extra=log_context)

        excel_files = self.context.store.get_excel_files(folder_name)
        if not excel_files:
            logger.warning("No workbooks found", extra=log_context)
            return Result.not_found(f"{folder_name} 폴더에서 Excel 파일을 찾을 수 없습니다.")

        with LogContext("workbook processing", file_count=len(excel_files), **log_context):
            outcomes = [(info.name, self._process_file(info.name)) for info in excel_files]

        processed, _ = Result.partition(outcome for _, outcome in outcomes)
        failed_files = [
            FailedFile(file_name=file_name, reason=outcome.error or "")
            for file_name, outcome in outcomes if outcome.is_failure()
        ]
        if not processed:
            logger.error("No processable workbook", extra={**log_context, "failed_files": len(failed_files)})
            return Result.server_error("처리 가능한 Excel 파일이 없습니다.")

        # one entry per stored object, even when names differ only in extension case
        results = calculate_all_employees(
            {item.file_name: item.rows for item in processed},
            {item.file_name: item.download_url for item in processed},
            month,
            target_year=year,
            daily_amount=self.context.config.daily_amount,
            name_policy=self.context.config.name_policy,
        )

        updated, sheets_error = self._update_sheet(results, year, month, request_id)

        response = CalculationResponse(
            results=results,
            folder_name=folder_name,
            processed_files=len(processed),
            failed_files=failed_files,
            google_sheets_updated=updated,
            google_sheets_error=sheets_error,
        )
        logger.info(
            "Calculation completed",
            extra={**log_context, "processed_files": len(processed), "failed_count": len(failed_files),
                   "google_sheets_updated": updated}
        )
        return Result.ok(response)

    def list_files(self, year: int, month: int) -> Result[StorageListing]:
        folder_name = create_folder_name(year, month)
        files = self.context.store.get_all_file_download_links(folder_name)
        if not files:
            return Result.not_found(f"{folder_name} 폴더에서 파일을 찾을 수 없습니다.")
        return Result.ok(StorageListing(folder_name=folder_name, file_count=len(files), files=files))
