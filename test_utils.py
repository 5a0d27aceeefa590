from http import HTTPStatus
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from utils.file_names import (
    NamePolicy,
    clean_template_file_name,
    extract_employee_name,
    extract_last_segment_name,
    generate_template_prefix,
    normalize_employee_name,
    remove_file_extension,
    remove_prefix_and_suffix,
    remove_strings_from_file_name,
)
from utils.periods import create_folder_name, get_half_year, validate_query_params
from utils.result import Result


class TestFileNames:
    """
    Tests for deriving employee names from uploaded file names.
    """

    @pytest.mark.parametrize(
        "file_name, expected",
        [("a.xlsx", "a"), ("a.b.xlsx", "a.b"), ("noext", "noext"), (".xlsx", "")],
    )
    def test_remove_file_extension(self, file_name, expected):
        assert remove_file_extension(file_name) == expected

    def test_remove_strings_removes_first_occurrence_in_order(self):
        assert remove_strings_from_file_name("ab_ab_c", ["ab_", "c"]) == "ab_"

    def test_remove_prefix_and_suffix(self):
        assert remove_prefix_and_suffix("pre_name_suf", "pre_", "_suf") == "name"
        assert remove_prefix_and_suffix("name", "pre_", "_suf") == "name"

    @pytest.mark.parametrize(
        "year, month, expected",
        [
            (2025, 3, "ACG_식대 정리_Template_2025년 상반기_"),
            (2025, 6, "ACG_식대 정리_Template_2025년 상반기_"),
            (2025, 7, "ACG_식대 정리_Template_2025년 하반기_"),
        ],
    )
    def test_template_prefix(self, year, month, expected):
        assert generate_template_prefix(year, month) == expected

    def test_template_policy_strips_period_prefix(self):
        file_name = "ACG_식대 정리_Template_2025년 상반기_홍길동.xlsx"

        assert clean_template_file_name(file_name, 2025, 3) == "홍길동"

    def test_template_policy_leaves_other_period_untouched(self):
        file_name = "ACG_식대 정리_Template_2025년 상반기_홍길동.xlsx"

        assert clean_template_file_name(file_name, 2025, 9) == "ACG_식대 정리_Template_2025년 상반기_홍길동"

    def test_template_policy_falls_back_to_legacy_prefix(self):
        assert clean_template_file_name("ACG_식대 정리_Template_25년 하반기_홍길동.xlsx") == "홍길동"

    def test_last_segment_policy(self):
        assert extract_last_segment_name("any_prefix_홍길동.xlsx") == "홍길동"
        assert extract_last_segment_name("홍길동.xlsx") == "홍길동"

    def test_extract_employee_name_drops_folder_and_extension(self):
        assert extract_employee_name("2025 상반기/ACG_홍길동.xlsx") == "ACG_홍길동"

    @pytest.mark.parametrize("policy", [NamePolicy.TEMPLATE, NamePolicy.LAST_SEGMENT, "last_segment"])
    def test_normalize_drops_folder_first(self, policy):
        raw = "2025 상반기/ACG_식대 정리_Template_2025년 상반기_홍길동.xlsx"

        assert normalize_employee_name(raw, 2025, 3, policy) == "홍길동"


class TestPeriods:
    """
    Tests for half-year folders and query validation.
    """

    @pytest.mark.parametrize("month, expected", [(1, "상반기"), (6, "상반기"), (7, "하반기"), (12, "하반기")])
    def test_half_year(self, month, expected):
        assert get_half_year(month) == expected

    def test_folder_name(self):
        assert create_folder_name(2025, 3) == "2025 상반기"
        assert create_folder_name(2025, 7) == "2025 하반기"

    def test_valid_params(self):
        result = validate_query_params("2025", "3")

        assert result.is_success()
        assert result.data == (2025, 3)

    @pytest.mark.parametrize(
        "year, month",
        [(None, "3"), ("2025", None), ("", ""), ("2025", "13"), ("2025", "0"), ("abc", "3")],
        ids=["no-year", "no-month", "empty", "month-13", "month-0", "text-year"]
    )
    def test_invalid_params(self, year, month):
        result = validate_query_params(year, month)

        assert result.is_failure()
        assert result.status_code == HTTPStatus.BAD_REQUEST
        assert result.error


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    work_day: int


class TestResult:
    """
    Tests for the Result type.
    """

    def test_default_status_codes(self):
        assert Result.ok(1).status_code == HTTPStatus.OK
        assert Result.fail("x").status_code == HTTPStatus.BAD_REQUEST
        assert Result.not_found().status_code == HTTPStatus.NOT_FOUND
        assert Result.server_error().status_code == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_partition_keeps_order(self):
        results = [Result.ok(1), Result.fail("bad"), Result.ok(2), Result.server_error("worse")]

        values, errors = Result.partition(results)

        assert values == [1, 2]
        assert errors == ["bad", "worse"]

    def test_and_then_runs_next_step_on_success(self):
        chained = Result.ok((2025, 3)).and_then(lambda period: Result.ok(period[1] * 2))

        assert chained.data == 6

    def test_and_then_short_circuits_failure(self):
        step = MagicMock()

        failed = Result.not_found("missing").and_then(step)

        step.assert_not_called()
        assert failed.is_failure()
        assert failed.error == "missing"
        assert failed.status_code == HTTPStatus.NOT_FOUND

    def test_to_dict_dumps_models_by_alias(self):
        body = Result.ok(_Payload(work_day=3)).to_dict()

        assert body == {"success": True, "status_code": 200, "status": "OK", "data": {"workDay": 3}}

    def test_to_dict_failure(self):
        body = Result.invalid_input("bad month").to_dict()

        assert body["success"] is False
        assert body["status_code"] == 400
        assert body["error"] == "bad month"
