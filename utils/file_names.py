"""
File name helpers that turn an uploaded attendance workbook name into an
employee display name.

Uploaded files follow the template naming convention
``ACG_식대 정리_Template_<year>년 <half>_<name>.xlsx`` and live in a period
folder such as ``2025 상반기/``.
"""
from enum import Enum
from typing import Iterable, Optional

from utils.periods import get_half_year

TEMPLATE_BASE = "ACG_식대 정리_Template_"
LEGACY_TEMPLATE_PREFIX = "ACG_식대 정리_Template_25년 하반기_"


class NamePolicy(str, Enum):
    """How a display name is derived from a file name."""
    TEMPLATE = "template"
    LAST_SEGMENT = "last_segment"


def generate_template_prefix(sheet_year: int, sheet_month: int) -> str:
    """
    Build the template prefix for a period, e.g.
    ``"ACG_식대 정리_Template_2025년 상반기_"`` for 2025/3.
    """
    return f"{TEMPLATE_BASE}{sheet_year}년 {get_half_year(sheet_month)}_"


def remove_file_extension(file_name: str) -> str:
    last_dot = file_name.rfind(".")
    if last_dot == -1:
        return file_name
    return file_name[:last_dot]


def remove_strings_from_file_name(file_name: str, strings_to_remove: Iterable[str]) -> str:
    """Remove the first occurrence of each substring, in the given order."""
    result = file_name
    for value in strings_to_remove:
        result = result.replace(value, "", 1)
    return result


def remove_prefix_and_suffix(value: str, prefix: str, suffix: str) -> str:
    result = value
    if prefix and result.startswith(prefix):
        result = result[len(prefix):]
    if suffix and result.endswith(suffix):
        result = result[:-len(suffix)]
    return result


def strip_directory(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def extract_employee_name(path: str) -> str:
    """Storage object name without its folder and extension."""
    return remove_file_extension(strip_directory(path))


def clean_template_file_name(file_name: str, sheet_year: Optional[int] = None, sheet_month: Optional[int] = None) -> str:
    """
    Strip the extension and the template prefix from a file name.

    Without a period the legacy 2025 second-half prefix is removed instead.

    Args:
        file_name: File name, with or without extension
        sheet_year: Four digit year used in the template prefix
        sheet_month: Month (1-12) selecting the half-year label

    Returns:
        str: The employee name left after the prefix
    """
    cleaned = remove_file_extension(file_name)
    if sheet_year and sheet_month:
        prefix = generate_template_prefix(sheet_year, sheet_month)
    else:
        prefix = LEGACY_TEMPLATE_PREFIX
    return cleaned.replace(prefix, "", 1)


def extract_last_segment_name(file_name: str) -> str:
    """Text after the last underscore of the extension-less name."""
    cleaned = remove_file_extension(file_name)
    return cleaned.rsplit("_", 1)[-1]


def normalize_employee_name(
    raw_name: str,
    sheet_year: Optional[int] = None,
    sheet_month: Optional[int] = None,
    policy: NamePolicy = NamePolicy.TEMPLATE,
) -> str:
    """
    Display name for a raw storage identifier under the given policy.

    The folder part of ``raw_name`` is always dropped first.
    """
    file_name = strip_directory(raw_name)
    if NamePolicy(policy) is NamePolicy.LAST_SEGMENT:
        return extract_last_segment_name(file_name)
    return clean_template_file_name(file_name, sheet_year, sheet_month)
