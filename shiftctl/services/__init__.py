"""Async services built on the backend client."""

from .base import BaseService
from .documents import DocumentService
from .workforce import WorkforceService

__all__ = ["BaseService", "DocumentService", "WorkforceService"]
