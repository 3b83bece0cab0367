"""Filesystem blob store with an in-memory file index and TTL-based expiry."""

import itertools
import os
import tempfile
import threading
import uuid
from datetime import timedelta
from typing import Dict, List, Optional

from pdftools.errors import FileNotFound, TransportError
from pdftools.jobs.models import utcnow
from pdftools.logger import logger
from pdftools.storage.base import BlobStore, FileId, FileRecord, StoredObject


class LocalBlobStore(BlobStore):
    """Keeps uploads under <base>/uploads and produced files under <base>/outputs."""

    def __init__(self, base_dir: Optional[str] = None, ttl_hours: int = 24):
        if base_dir:
            self._base_dir = os.path.abspath(base_dir)
        else:
            self._base_dir = os.path.join(tempfile.gettempdir(), "pdftools_data")
        self._uploads_dir = os.path.join(self._base_dir, "uploads")
        self._outputs_dir = os.path.join(self._base_dir, "outputs")
        os.makedirs(self._uploads_dir, exist_ok=True)
        os.makedirs(self._outputs_dir, exist_ok=True)
        self._ttl = timedelta(hours=ttl_hours)

        self._files: Dict[int, FileRecord] = {}
        self._objects: Dict[str, str] = {}  # storage key -> mime type
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def save_upload(self, data: bytes, original_name: str, mime_type: str) -> FileRecord:
        key = _storage_key(original_name)
        self._write(os.path.join(self._uploads_dir, key), data)
        now = utcnow()
        with self._lock:
            record = FileRecord(
                id=next(self._ids),
                original_name=original_name,
                storage_key=key,
                mime_type=mime_type,
                size=len(data),
                uploaded_at=now,
                expires_at=now + self._ttl,
            )
            self._files[record.id] = record
        return record

    def get_file(self, file_id: FileId) -> FileRecord:
        try:
            numeric_id = int(file_id)
        except (TypeError, ValueError):
            raise FileNotFound(file_id)
        with self._lock:
            record = self._files.get(numeric_id)
        if record is None:
            raise FileNotFound(file_id)
        return record

    def fetch(self, file_id: FileId) -> bytes:
        record = self.get_file(file_id)
        path = os.path.join(self._uploads_dir, record.storage_key)
        if not os.path.exists(path):
            raise FileNotFound(file_id)
        return self._read(path)

    def store(self, data: bytes, name: str, mime_type: str) -> str:
        key = os.path.basename(name)
        self._write(os.path.join(self._outputs_dir, key), data)
        with self._lock:
            self._objects[key] = mime_type
        return key

    def open_object(self, key: str) -> StoredObject:
        with self._lock:
            mime_type = self._objects.get(key)
        path = os.path.join(self._outputs_dir, os.path.basename(key))
        if mime_type is None or not os.path.exists(path):
            raise FileNotFound(key)
        return StoredObject(key=key, data=self._read(path), mime_type=mime_type)

    def delete_file(self, file_id: FileId) -> None:
        record = self.get_file(file_id)
        try:
            os.remove(os.path.join(self._uploads_dir, record.storage_key))
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise TransportError(f"Failed to delete {record.storage_key}: {exc}") from exc
        with self._lock:
            if self._files.pop(record.id, None) is None:
                raise FileNotFound(file_id)

    def expired_files(self) -> List[FileRecord]:
        now = utcnow()
        with self._lock:
            return [f for f in self._files.values() if f.expires_at <= now]

    @staticmethod
    def _write(path: str, data: bytes) -> None:
        # Write beside the target then rename so readers never see a partial file.
        tmp_path = f"{path}.{uuid.uuid4().hex}.tmp"
        try:
            with open(tmp_path, "wb") as dst:
                dst.write(data)
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            logger.error(f"Blob write failed for {os.path.basename(path)}: {exc}")
            raise TransportError(f"Failed to store {os.path.basename(path)}: {exc}") from exc

    @staticmethod
    def _read(path: str) -> bytes:
        try:
            with open(path, "rb") as src:
                return src.read()
        except OSError as exc:
            raise TransportError(f"Failed to read {os.path.basename(path)}: {exc}") from exc


def _storage_key(name: str) -> str:
    return f"{uuid.uuid4()}-{os.path.basename(name) or 'upload'}"
