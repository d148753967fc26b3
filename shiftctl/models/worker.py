"""Worker model."""

import uuid
from typing import Optional

from pydantic import BaseModel, field_validator


def is_valid_uuid(value: Optional[str]) -> bool:
    """Check whether a string is a canonical UUID."""
    if not value:
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False


class Worker(BaseModel):
    """Care worker record from the ``workers`` table."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate worker id is a UUID."""
        if not is_valid_uuid(v):
            raise ValueError("Worker ID must be a valid UUID")
        return v.lower()

    @property
    def id_suffix(self) -> str:
        """Last four hex digits of the worker id."""
        return self.id[-4:]
