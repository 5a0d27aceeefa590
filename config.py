"""
Process-wide settings and the application context.

Settings come from environment variables, optionally loaded from a ``.env``
file. The context is built once at startup and handed to the service and the
API layer.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

import gspread
from dotenv import load_dotenv
from google.oauth2.service_account import Credentials
from pydantic import BaseModel

from attendance_extractor import DEFAULT_DATA_RANGE, DEFAULT_SHEET_NAME
from balance_calculator import DAILY_AMOUNT
from sheets_writer import GoogleSheetsWriter
from storage import LocalDocumentStore
from utils.file_names import NamePolicy

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

SHEETS_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]


class AppConfig(BaseModel):
    """
    Runtime settings.

    Attributes:
        daily_amount: Stipend per entitled day
        sheet_name: Sheet of the uploaded workbook holding attendance lines
        data_range: Inclusive A1 range of the attendance block
        storage_root: Directory holding one folder per half-year
        public_base_url: Base URL under which stored files are downloadable
        spreadsheet_id: Google spreadsheet receiving the results, unset to skip the upload
        credentials_file: Service account key file
        service_account_json: Inline service account key, preferred over the file
        name_policy: How employee names are derived from file names
        log_dir: Directory for the daily log file
        log_level: Root log level
    """
    daily_amount: int = DAILY_AMOUNT
    sheet_name: str = DEFAULT_SHEET_NAME
    data_range: str = DEFAULT_DATA_RANGE
    storage_root: str = os.path.join(BASE_DIR, "static", "storage")
    public_base_url: str = "http://localhost:8000/storage"
    spreadsheet_id: Optional[str] = None
    credentials_file: Optional[str] = None
    service_account_json: Optional[str] = None
    name_policy: NamePolicy = NamePolicy.TEMPLATE
    log_dir: str = os.path.join(BASE_DIR, "logs")
    log_level: str = "INFO"


def load_config() -> AppConfig:
    """Build the settings from the environment, reading ``.env`` first."""
    load_dotenv()
    values = {
        "daily_amount": os.getenv("DAILY_AMOUNT"),
        "sheet_name": os.getenv("SHEET_NAME"),
        "data_range": os.getenv("DATA_RANGE"),
        "storage_root": os.getenv("STORAGE_ROOT"),
        "public_base_url": os.getenv("PUBLIC_BASE_URL"),
        "spreadsheet_id": os.getenv("SPREADSHEET_ID"),
        "credentials_file": os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        "service_account_json": os.getenv("SERVICE_ACCOUNT_JSON"),
        "name_policy": os.getenv("NAME_POLICY"),
        "log_dir": os.getenv("LOG_DIR"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    return AppConfig(**{key: value.strip() for key, value in values.items() if value and value.strip()})


def build_credentials(config: AppConfig) -> Optional[Credentials]:
    """
    Service account credentials from inline JSON or a key file.

    Returns None when neither is configured.

    Raises:
        RuntimeError: If the inline JSON is not valid JSON
        FileNotFoundError: If the key file does not exist
    """
    if config.service_account_json:
        try:
            info = json.loads(config.service_account_json)
        except json.JSONDecodeError as e:
            raise RuntimeError("SERVICE_ACCOUNT_JSON is not valid JSON") from e
        return Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)

    if config.credentials_file:
        if not os.path.exists(config.credentials_file):
            raise FileNotFoundError(f"Service account key file not found: {config.credentials_file}")
        return Credentials.from_service_account_file(config.credentials_file, scopes=SHEETS_SCOPES)

    return None


def build_sheets_writer(config: AppConfig) -> Optional[GoogleSheetsWriter]:
    if not config.spreadsheet_id:
        logger.warning("SPREADSHEET_ID is not set, results will not be uploaded")
        return None

    credentials = build_credentials(config)
    if credentials is None:
        logger.warning("No service account credentials configured, results will not be uploaded")
        return None

    client = gspread.authorize(credentials)
    return GoogleSheetsWriter(client, config.spreadsheet_id)


@dataclass
class AppContext:
    """Collaborators shared by every request, built once per process."""
    config: AppConfig
    store: LocalDocumentStore
    sheets_writer: Optional[GoogleSheetsWriter] = None


def build_context(config: Optional[AppConfig] = None) -> AppContext:
    config = config or load_config()
    return AppContext(
        config=config,
        store=LocalDocumentStore(config.storage_root, config.public_base_url),
        sheets_writer=build_sheets_writer(config),
    )
