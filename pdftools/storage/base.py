"""Blob store interface and the file record it owns."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Union

from pydantic import BaseModel

from pdftools.errors import FileNotFound, TransportError
from pdftools.logger import logger

FileId = Union[int, str]


class FileRecord(BaseModel):
    """An uploaded file, addressed by id."""
    id: int
    original_name: str
    storage_key: str
    mime_type: str
    size: int
    uploaded_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class StoredObject:
    key: str
    data: bytes
    mime_type: str


class BlobStore(ABC):
    """Byte storage for uploaded inputs and produced outputs.

    Every call either fully succeeds or raises; a failed write leaves nothing
    visible under its key.
    """

    @abstractmethod
    def save_upload(self, data: bytes, original_name: str, mime_type: str) -> FileRecord:
        ...

    @abstractmethod
    def get_file(self, file_id: FileId) -> FileRecord:
        """Resolve a file id. Raises FileNotFound."""
        ...

    @abstractmethod
    def fetch(self, file_id: FileId) -> bytes:
        """Read an uploaded file's bytes. Raises FileNotFound or TransportError."""
        ...

    @abstractmethod
    def store(self, data: bytes, name: str, mime_type: str) -> str:
        """Persist produced bytes and return their storage key. Raises TransportError."""
        ...

    @abstractmethod
    def open_object(self, key: str) -> StoredObject:
        """Read a produced object back. Raises FileNotFound or TransportError."""
        ...

    @abstractmethod
    def delete_file(self, file_id: FileId) -> None:
        ...

    @abstractmethod
    def expired_files(self) -> List[FileRecord]:
        ...

    def cleanup_expired(self) -> int:
        """Remove expired uploads. Returns count of removed files.

        A file that fails to delete is logged and skipped; the sweep continues.
        A file already removed by a concurrent sweep is not counted.
        """
        removed = 0
        for record in self.expired_files():
            try:
                self.delete_file(record.id)
            except FileNotFound:
                continue
            except TransportError as exc:
                logger.error(f"Failed to delete file {record.id}: {exc}")
                continue
            removed += 1
        return removed
