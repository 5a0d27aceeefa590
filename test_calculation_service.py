from http import HTTPStatus
from unittest.mock import MagicMock

import pytest

from calculation_service import CalculationService
from config import AppConfig, AppContext
from conftest import TEMPLATE_NAME, build_workbook, month_rows
from sheets_writer import SheetsUpdateError
from storage import LocalDocumentStore

FOLDER = "2025 상반기"


def make_context(storage_root, sheets_writer=None, **overrides):
    config = AppConfig(storage_root=str(storage_root), public_base_url="http://files/storage", **overrides)
    return AppContext(
        config=config,
        store=LocalDocumentStore(config.storage_root, config.public_base_url),
        sheets_writer=sheets_writer,
    )


class TestCalculate:
    """
    Tests for the monthly calculation over a storage folder.
    """

    def test_two_employees(self, storage_root):
        result = CalculationService(make_context(storage_root)).calculate(2025, 3)

        assert result.is_success()
        response = result.data
        assert response.folder_name == FOLDER
        assert response.processed_files == 2
        assert response.failed_files == []
        assert [item.name for item in response.results] == ["김철수", "홍길동"]
        for item in response.results:
            assert (item.work_day, item.weekend_work, item.holiday) == (20, 1, 0)
            assert item.total == 210000
            assert item.used_amount == 150000
            assert item.balance == 60000
            assert item.download_url.startswith("http://files/storage/2025%20")

    def test_without_sheets_writer_reports_missing_configuration(self, storage_root):
        response = CalculationService(make_context(storage_root)).calculate(2025, 3).data

        assert response.google_sheets_updated is False
        assert response.google_sheets_error == "SPREADSHEET_ID not configured"

    def test_results_are_written_to_sheet(self, storage_root):
        writer = MagicMock()

        response = CalculationService(make_context(storage_root, writer)).calculate(2025, 3).data

        assert response.google_sheets_updated is True
        assert response.google_sheets_error is None
        writer.write_results.assert_called_once_with(response.results, 2025, 3)

    def test_sheet_failure_does_not_fail_the_calculation(self, storage_root):
        writer = MagicMock()
        writer.write_results.side_effect = SheetsUpdateError("Google Sheets 업데이트 실패: quota")

        result = CalculationService(make_context(storage_root, writer)).calculate(2025, 3)

        assert result.is_success()
        assert result.data.google_sheets_updated is False
        assert "quota" in result.data.google_sheets_error

    def test_names_differing_in_extension_case_are_both_counted(self, storage_root):
        upper_case_copy = TEMPLATE_NAME.format("홍길동")[:-len(".xlsx")] + ".XLSX"
        (storage_root / FOLDER / upper_case_copy).write_bytes(build_workbook(month_rows(amounts=(10000,))))

        response = CalculationService(make_context(storage_root)).calculate(2025, 3).data

        assert response.processed_files == 3
        assert [item.name for item in response.results] == ["김철수", "홍길동", "홍길동"]
        assert sorted(item.used_amount for item in response.results) == [10000, 150000, 150000]
        assert len({item.download_url for item in response.results}) == 3

    def test_broken_workbook_is_skipped_and_reported(self, storage_root):
        (storage_root / FOLDER / TEMPLATE_NAME.format("이영희")).write_bytes(b"not a workbook")

        response = CalculationService(make_context(storage_root)).calculate(2025, 3).data

        assert response.processed_files == 2
        assert len(response.failed_files) == 1
        assert response.failed_files[0].file_name.endswith("이영희.xlsx")
        assert "이영희" not in [item.name for item in response.results]

    def test_workbook_without_attendance_sheet_is_reported(self, storage_root):
        content = build_workbook(month_rows(), sheet_name="Sheet1")
        (storage_root / FOLDER / TEMPLATE_NAME.format("박민수")).write_bytes(content)

        response = CalculationService(make_context(storage_root)).calculate(2025, 3).data

        assert len(response.failed_files) == 1
        assert "SheetNotFoundError" in response.failed_files[0].reason

    def test_every_workbook_failing_is_a_server_error(self, tmp_path):
        folder = tmp_path / FOLDER
        folder.mkdir()
        (folder / "broken.xlsx").write_bytes(b"garbage")

        result = CalculationService(make_context(tmp_path)).calculate(2025, 3)

        assert result.is_failure()
        assert result.status_code == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_empty_folder_is_not_found(self, storage_root):
        result = CalculationService(make_context(storage_root)).calculate(2025, 9)

        assert result.is_failure()
        assert result.status_code == HTTPStatus.NOT_FOUND
        assert "2025 하반기" in result.error

    def test_configured_daily_amount(self, storage_root):
        response = CalculationService(make_context(storage_root, daily_amount=12000)).calculate(2025, 3).data

        assert response.results[0].total == 21 * 12000

    def test_other_month_of_same_half_has_zero_counts(self, storage_root):
        response = CalculationService(make_context(storage_root)).calculate(2025, 4).data

        assert response.processed_files == 2
        assert all(item.total == 0 and item.used_amount == 0 for item in response.results)


class TestListFiles:
    """
    Tests for listing the files of a period.
    """

    def test_lists_every_file_with_link(self, storage_root):
        result = CalculationService(make_context(storage_root)).list_files(2025, 3)

        assert result.is_success()
        assert result.data.file_count == 3
        assert all(info.download_url for info in result.data.files)

    def test_missing_folder_is_not_found(self, storage_root):
        result = CalculationService(make_context(storage_root)).list_files(2024, 11)

        assert result.status_code == HTTPStatus.NOT_FOUND
