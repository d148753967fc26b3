"""Worker document model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class WorkerDocument(BaseModel):
    """Uploaded document from the ``worker_documents`` table."""

    id: str
    worker_id: str
    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)
    storage_path: str
    document_title: Optional[str] = None
    document_description: Optional[str] = None
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_title(self) -> str:
        return self.document_title or self.file_name
