"""Worker document storage.

Documents live in a storage bucket under ``<worker_id>/`` with a row in
``worker_documents`` describing each one.
"""

import re
import secrets
import string
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import NotFoundError, ShiftCtlError, ValidationError
from ..models import WorkerDocument
from ..query import Query
from .base import BaseService

MAX_DOCUMENTS = 10
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
SIGNED_URL_TTL = 60 * 60  # 1 hour

ALLOWED_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_file_name(name: str) -> str:
    """Replace everything but letters, digits, dots and dashes with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def build_storage_path(worker_id: str, extension: str, now_ms: Optional[int] = None) -> str:
    """Unique object path, e.g. ``<worker_id>/document-<ms>-<random>.pdf``."""
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    token = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"{worker_id}/document-{stamp}-{token}.{extension.lstrip('.')}"


class DocumentService(BaseService):
    """Upload, list and fetch the signed-in worker's documents."""

    @property
    def bucket(self) -> str:
        return self.client.document_bucket

    async def list_documents(self) -> List[WorkerDocument]:
        """List the worker's documents, newest first."""
        worker = self.require_worker()
        query = (
            Query("worker_documents")
            .select("*")
            .eq("worker_id", worker.id)
            .order("created_at", ascending=False)
        )
        rows = await self._call(self.client.select, query)
        return [WorkerDocument(**row) for row in rows or []]

    async def get_document(self, document_id: str) -> WorkerDocument:
        """Get one of the worker's documents.

        Raises:
            NotFoundError: If the worker has no such document
        """
        worker = self.require_worker()
        query = (
            Query("worker_documents")
            .select("*")
            .eq("id", document_id)
            .eq("worker_id", worker.id)
            .single()
        )
        try:
            row = await self._call(self.client.select, query)
        except NotFoundError as e:
            raise NotFoundError("Document not found", status_code=e.status_code, code=e.code) from e
        return WorkerDocument(**row)

    async def upload_document(
        self,
        path: Union[str, Path],
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WorkerDocument:
        """Upload a PDF or DOCX file and record it.

        If recording the row fails the uploaded object is removed again
        before the error is raised.

        Raises:
            ValidationError: If the file is missing, empty, too large, of the
                wrong type, or the document limit is reached
        """
        worker = self.require_worker()
        path = Path(path)
        if not path.is_file():
            raise ValidationError(f"File not found: {path}")

        extension = path.suffix.lower()
        content_type = ALLOWED_MIME_TYPES.get(extension)
        if content_type is None:
            raise ValidationError("Invalid file type. Only PDF and Word documents are allowed.")

        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            raise ValidationError(
                f"File size exceeds 10MB limit. Your file is {size / 1024 / 1024:.2f}MB."
            )

        existing = await self.list_documents()
        if len(existing) >= MAX_DOCUMENTS:
            raise ValidationError(f"You have reached the maximum limit of {MAX_DOCUMENTS} documents.")

        content = path.read_bytes()
        if not content:
            raise ValidationError("Failed to read file content. The file appears to be empty or unreadable.")

        storage_path = build_storage_path(worker.id, extension)
        self._debug(f"Uploading {path.name} ({len(content)} bytes) to {storage_path}")

        # An upload that reached storage must not be repeated
        await self._call(
            self.client.upload_file,
            self.bucket,
            storage_path,
            content,
            content_type,
            retry=self._executor(max_retries=0),
        )

        session = self.client.auth.get_session()
        row: Dict[str, Any] = {
            "worker_id": worker.id,
            "file_name": path.name,
            "file_type": content_type,
            "file_size": len(content),
            "storage_path": storage_path,
            "document_title": title or path.name,
            "document_description": description,
            "uploaded_by": session.user_id if session else None,
        }

        try:
            data = await self._call(self.client.insert, "worker_documents", row, single=True)
        except ShiftCtlError:
            await self._remove_object(storage_path)
            raise

        return WorkerDocument(**data)

    async def _remove_object(self, storage_path: str) -> None:
        try:
            await self._call(self.client.remove_files, self.bucket, [storage_path])
        except ShiftCtlError as e:
            self._warn(f"Could not remove uploaded file {storage_path}: {e}")

    async def update_document(
        self,
        document_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WorkerDocument:
        """Change a document's title and/or description."""
        values: Dict[str, Any] = {}
        if title is not None:
            values["document_title"] = title
        if description is not None:
            values["document_description"] = description
        if not values:
            raise ValidationError("Nothing to update. Provide a title or a description.")

        worker = self.require_worker()
        query = Query("worker_documents").eq("id", document_id).eq("worker_id", worker.id)
        try:
            row = await self._call(self.client.update, query, values, single=True)
        except NotFoundError as e:
            raise NotFoundError("Document not found", status_code=e.status_code, code=e.code) from e
        return WorkerDocument(**row)

    async def delete_document(self, document_id: str) -> WorkerDocument:
        """Delete a document's stored object, then its row."""
        document = await self.get_document(document_id)
        await self._call(self.client.remove_files, self.bucket, [document.storage_path])
        await self._call(
            self.client.delete,
            Query("worker_documents").eq("id", document.id).eq("worker_id", document.worker_id),
        )
        return document

    async def get_document_url(self, document_id: str, expires_in: int = SIGNED_URL_TTL) -> str:
        """Signed URL for viewing a document (valid for one hour by default)."""
        document = await self.get_document(document_id)
        return await self._call(
            self.client.create_signed_url,
            self.bucket,
            document.storage_path,
            expires_in,
        )

    async def download_document(
        self,
        document_id: str,
        destination: Union[str, Path] = ".",
    ) -> Path:
        """Download a document into ``destination`` under a sanitized name.

        Raises:
            ValidationError: If the downloaded file is empty
        """
        document = await self.get_document(document_id)
        content = await self._call(self.client.download, self.bucket, document.storage_path)
        if not content:
            raise ValidationError(
                "Downloaded file is empty. The file may be corrupted or was uploaded incorrectly."
            )

        target_dir = Path(destination)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / sanitize_file_name(document.file_name)
        target.write_bytes(content)
        return target
