import logging
import os
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")


class DocumentNotFoundError(FileNotFoundError):
    """A requested document does not exist in the store."""


class StorageFileInfo(BaseModel):
    """
    A stored document.

    Attributes:
        name: Object name relative to the store root, e.g. "2025 상반기/a.xlsx"
        size: Size in bytes
        updated: Last modification time
        download_url: Link the file can be fetched from
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    size: Optional[int] = None
    updated: Optional[datetime] = None
    download_url: Optional[str] = None


def is_excel_file(file_name: str) -> bool:
    return file_name.lower().endswith(EXCEL_EXTENSIONS)


class LocalDocumentStore:
    """
    Uploaded workbooks kept in a directory tree, one folder per half-year.

    Object names use "/" separators relative to ``root`` regardless of the
    operating system.
    """

    def __init__(self, root: str, public_base_url: str = ""):
        self.root = os.path.abspath(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, name: str) -> str:
        path = os.path.abspath(os.path.join(self.root, *name.split("/")))
        if os.path.commonpath([self.root, path]) != self.root:
            raise DocumentNotFoundError(f"Document outside of storage root: {name}")
        return path

    def get_files(self, folder_name: str) -> List[StorageFileInfo]:
        """Files directly inside ``folder_name``, sorted by name."""
        folder_path = self._resolve(folder_name)
        if not os.path.isdir(folder_path):
            logger.info("Storage folder does not exist", extra={"folder_name": folder_name})
            return []

        files = []
        for entry in sorted(os.scandir(folder_path), key=lambda item: item.name):
            if not entry.is_file():
                continue
            stat = entry.stat()
            name = f"{folder_name}/{entry.name}"
            files.append(StorageFileInfo(
                name=name,
                size=stat.st_size,
                updated=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            ))
        return files

    def get_excel_files(self, folder_name: str) -> List[StorageFileInfo]:
        return [info for info in self.get_files(folder_name) if is_excel_file(info.name)]

    def file_exists(self, name: str) -> bool:
        try:
            return os.path.isfile(self._resolve(name))
        except DocumentNotFoundError:
            return False

    def download_file(self, name: str) -> bytes:
        """
        Read a stored document.

        Raises:
            DocumentNotFoundError: If ``name`` does not point to a file
        """
        path = self._resolve(name)
        if not os.path.isfile(path):
            raise DocumentNotFoundError(f"Document not found: {name}")
        with open(path, "rb") as handle:
            return handle.read()

    def get_download_url(self, name: str) -> str:
        return f"{self.public_base_url}/{quote(name)}"

    def get_all_file_download_links(self, folder_name: str) -> List[StorageFileInfo]:
        return [
            info.model_copy(update={"download_url": self.get_download_url(info.name)})
            for info in self.get_files(folder_name)
        ]
