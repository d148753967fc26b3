"""Client and service factory for dependency injection.

Commands that act on the active profile ask this module for a
``BackendClient`` (or a service wired to one) configured from the Typer
context.
"""

from typing import Any, Optional, Tuple

import typer
from rich.console import Console

from ..client import BackendClient
from ..config import ConfigManager, Profile
from ..exceptions import ConfigError, ShiftCtlError
from ..services import DocumentService, WorkforceService
from ..session import SessionStore


class ClientFactory:
    """Factory for creating configured BackendClient instances."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize the client factory.

        Args:
            console: Rich console instance for output
        """
        self.console = console or Console()

    def resolve_profile(self, ctx: typer.Context) -> Profile:
        """Get the profile for this invocation with command-line overrides applied.

        Raises:
            ConfigError: If no profile or environment configuration exists
        """
        profile = ctx.obj.get("profile")
        if not profile:
            error_msg = (
                "No backend configuration found. Please either:\n"
                "  1. Run 'shiftctl config init' to set up a profile, or\n"
                "  2. Set environment variables: SHIFTCTL_API_URL and SHIFTCTL_ANON_KEY"
            )
            raise ConfigError(error_msg)

        overrides = {}
        if ctx.obj.get("timeout") is not None:
            overrides["timeout"] = ctx.obj["timeout"]
        if ctx.obj.get("max_retries") is not None:
            overrides["retry_attempts"] = ctx.obj["max_retries"]
        if overrides:
            try:
                profile = Profile(**{**profile.model_dump(), **overrides})
            except ValueError as e:
                raise ConfigError(f"Invalid option: {e}")
        return profile

    def session_store(self, ctx: typer.Context) -> SessionStore:
        config_manager: ConfigManager = ctx.obj["config_manager"]
        return SessionStore(config_manager.session_file)

    def create_client_from_context(self, ctx: typer.Context) -> BackendClient:
        """Create a BackendClient from Typer context.

        Args:
            ctx: Typer context containing configuration

        Returns:
            Configured BackendClient instance

        Raises:
            ConfigError: If configuration is invalid or missing
            ShiftCtlError: If client creation fails
        """
        debug = ctx.obj.get("debug", False)
        profile = self.resolve_profile(ctx)

        if debug:
            self.console.print(f"[dim]Using profile: {profile.name}[/dim]")

        try:
            return BackendClient(
                profile=profile,
                session_store=self.session_store(ctx),
                debug=debug,
                console=self.console,
            )
        except ValueError as e:
            raise ShiftCtlError(f"Failed to create backend client: {e}")

    def _service_kwargs(self, ctx: typer.Context) -> dict:
        client = self.create_client_from_context(ctx)
        return {
            "client": client,
            "store": client.auth.session_store,
            "profile": self.resolve_profile(ctx),
            "console": self.console,
            "debug": ctx.obj.get("debug", False),
        }

    def create_workforce_service(self, ctx: typer.Context) -> WorkforceService:
        return WorkforceService(**self._service_kwargs(ctx))

    def create_document_service(self, ctx: typer.Context) -> DocumentService:
        return DocumentService(**self._service_kwargs(ctx))

    def test_client_connection(self, client: BackendClient) -> bool:
        """Test client connection and report the result.

        Args:
            client: BackendClient to test

        Returns:
            True if connection successful, False otherwise
        """
        if client.test_connection():
            self.console.print("[green]✓[/green] Connection successful")
            return True
        self.console.print("[red]✗[/red] Connection failed")
        return False


# Global factory instance
_client_factory = ClientFactory(Console(stderr=True))


def get_client_from_context(ctx: typer.Context) -> BackendClient:
    """Convenience function to get client from context."""
    return _client_factory.create_client_from_context(ctx)


def get_workforce_and_formatter(ctx: typer.Context) -> Tuple[WorkforceService, Any]:
    """Get the workforce service and the output formatter from context."""
    return _client_factory.create_workforce_service(ctx), ctx.obj["output_formatter"]


def get_documents_and_formatter(ctx: typer.Context) -> Tuple[DocumentService, Any]:
    """Get the document service and the output formatter from context."""
    return _client_factory.create_document_service(ctx), ctx.obj["output_formatter"]


def validate_client_connection(ctx: typer.Context) -> bool:
    """Build a client for the active profile and report whether it connects."""
    client = get_client_from_context(ctx)
    return _client_factory.test_client_connection(client)
