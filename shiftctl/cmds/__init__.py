"""Command modules for the shiftctl CLI.

This module exports all command groups (Typer apps) that can be registered
with the main application.
"""

from .auth import app as auth_app
from .config import app as config_app
from .documents import app as documents_app
from .schedules import app as schedules_app
from .shifts import app as shifts_app
from .timesheets import app as timesheets_app

__all__ = [
    "auth_app",
    "config_app",
    "documents_app",
    "schedules_app",
    "shifts_app",
    "timesheets_app",
]
