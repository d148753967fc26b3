"""Configuration management for shiftctl.

This module provides configuration profile management, including creating,
updating, deleting, and switching between backend projects.
"""

import os
import sys
import tomllib
import json
from pathlib import Path
from typing import Dict, List, Optional, Any
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator, HttpUrl

from .exceptions import ConfigError

ENV_API_URL = "SHIFTCTL_API_URL"
ENV_ANON_KEY = "SHIFTCTL_ANON_KEY"


class Profile(BaseModel):
    """Configuration profile for a workforce backend project."""

    name: str = Field(..., description="Profile name")
    url: HttpUrl = Field(..., description="Backend project URL")
    anon_key: str = Field(..., description="Anonymous (public) API key")
    timeout: int = Field(default=30, gt=0, le=300, description="Request timeout in seconds")
    retry_attempts: int = Field(default=3, ge=0, le=10, description="Retries after a network failure")
    initial_delay: int = Field(default=1000, ge=0, description="First retry delay in milliseconds")
    max_delay: int = Field(default=10000, ge=0, description="Longest retry delay in milliseconds")
    timezone: Optional[str] = Field(default=None, description="IANA timezone for week grouping")
    document_bucket: str = Field(default="worker-documents", description="Storage bucket for documents")
    active: bool = Field(default=False, description="Whether this is the active profile")

    @field_validator("anon_key")
    @classmethod
    def validate_anon_key(cls, v: str) -> str:
        """The anon key is a JWT issued by the backend project."""
        v = v.strip()
        parts = v.split(".")
        if len(parts) != 3 or not all(parts):
            raise ValueError("Invalid anon key format. Expected a JWT (header.payload.signature)")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "Profile":
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be greater than or equal to initial_delay")
        return self

    def model_dump(self, **kwargs: Any) -> Dict[str, Any]:
        """Dump with the URL as a plain string without trailing slash."""
        data = super().model_dump(**kwargs)
        if "url" in data:
            data["url"] = self.base_url
        return data

    @property
    def base_url(self) -> str:
        return str(self.url).rstrip("/")


class ConfigManager:
    """Stores backend profiles under ``~/.shiftctl``.

    Each profile is a JSON file in ``profiles/``; ``config.toml`` records
    which one is active.
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = config_dir or Path.home() / ".shiftctl"
        self.config_file = self.config_dir / "config.toml"
        self.profiles_dir = self.config_dir / "profiles"
        self.session_file = self.config_dir / "session.json"

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.profiles_dir.mkdir(exist_ok=True)

        self._profiles: Dict[str, Profile] = {}
        self._active_profile: Optional[str] = None
        self._load_config()

    def create_profile(
        self,
        name: str,
        url: str,
        anon_key: str,
        timeout: int = 30,
        retry_attempts: int = 3,
        initial_delay: int = 1000,
        max_delay: int = 10000,
        timezone: Optional[str] = None,
        document_bucket: str = "worker-documents",
    ) -> Profile:
        """Create and save a profile. The first profile becomes the active one.

        Raises:
            ConfigError: If the name is taken or a setting is invalid
        """
        if name in self._profiles:
            raise ConfigError(f"Profile '{name}' already exists")

        parsed_url = urlparse(url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ConfigError("Invalid URL format")

        try:
            profile = Profile(
                name=name,
                url=url,
                anon_key=anon_key,
                timeout=timeout,
                retry_attempts=retry_attempts,
                initial_delay=initial_delay,
                max_delay=max_delay,
                timezone=timezone,
                document_bucket=document_bucket,
            )
        except ValueError as e:
            raise ConfigError(f"Failed to create profile: {e}")

        self._profiles[name] = profile
        self._save_profile(profile)
        if self._active_profile is None:
            self.set_active_profile(name)
        else:
            self._save_config()
        return profile

    def update_profile(self, name: str, **changes: Any) -> Profile:
        """Change settings of a saved profile; ``None`` values are left alone."""
        current = self.get_profile(name)
        if "name" in changes and changes["name"] != name:
            raise ConfigError("Profiles cannot be renamed")

        data = current.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        try:
            profile = Profile(**data)
        except ValueError as e:
            raise ConfigError(f"Failed to update profile: {e}")

        self._profiles[name] = profile
        self._save_profile(profile)
        return profile

    def list_profiles(self) -> List[Dict[str, Any]]:
        """Saved profiles as dicts, anon keys masked."""
        profiles = []
        for profile in self._profiles.values():
            data = profile.model_dump()
            data["anon_key"] = f"{profile.anon_key[:8]}..."
            data["active"] = profile.name == self._active_profile
            profiles.append(data)
        return profiles

    def set_active_profile(self, name: str) -> None:
        self.get_profile(name)
        for profile in self._profiles.values():
            profile.active = profile.name == name
        self._active_profile = name
        self._save_config()

    def get_active_profile(self) -> Optional[str]:
        return self._active_profile

    def get_default_profile(self) -> Profile:
        """The active profile.

        Raises:
            ConfigError: If no profile is active
        """
        if not self._active_profile or self._active_profile not in self._profiles:
            raise ConfigError("No default profile set")
        return self._profiles[self._active_profile]

    def get_profile(self, name: str) -> Profile:
        try:
            return self._profiles[name]
        except KeyError:
            raise ConfigError(f"Profile '{name}' not found") from None

    def delete_profile(self, name: str) -> None:
        self.get_profile(name)
        if self._active_profile == name:
            self._active_profile = None

        del self._profiles[name]
        (self.profiles_dir / f"{name}.json").unlink(missing_ok=True)
        self._save_config()

    def has_environment_config(self) -> bool:
        """True when both the URL and the anon key are set in the environment."""
        return bool(os.getenv(ENV_API_URL) and os.getenv(ENV_ANON_KEY))

    def get_environment_profile(self) -> Profile:
        """Build a temporary ``environment`` profile.

        The URL and anon key come from the environment. Other settings
        (retries, timezone, bucket) are taken from the active profile when
        there is one.

        Raises:
            ConfigError: If a variable is missing or invalid
        """
        env_url = os.getenv(ENV_API_URL)
        env_anon_key = os.getenv(ENV_ANON_KEY)
        if not env_url:
            raise ConfigError(f"{ENV_API_URL} environment variable is required")
        if not env_anon_key:
            raise ConfigError(f"{ENV_ANON_KEY} environment variable is required")

        base: Dict[str, Any] = {}
        if self._active_profile in self._profiles:
            base = self._profiles[self._active_profile].model_dump()
        base.update(name="environment", url=env_url, anon_key=env_anon_key, active=True)

        try:
            return Profile(**base)
        except ValueError as e:
            raise ConfigError(f"Invalid environment configuration: {e}")

    def _load_config(self) -> None:
        if not self.config_file.exists():
            return

        try:
            with open(self.config_file, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        self._active_profile = config_data.get("active_profile") or None

        for profile_file in self.profiles_dir.glob("*.json"):
            try:
                with open(profile_file, "r") as f:
                    profile = Profile(**json.load(f))
            except (OSError, ValueError) as e:
                # A broken profile file must not hide the others
                print(f"Warning: skipping profile {profile_file.name}: {e}", file=sys.stderr)
                continue
            self._profiles[profile.name] = profile

    def _save_config(self) -> None:
        # tomllib only reads, and the file holds two keys
        content = '# shiftctl configuration\nversion = "1.0"\n'
        if self._active_profile:
            content += f'active_profile = "{self._active_profile}"\n'
        try:
            self.config_file.write_text(content)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def _save_profile(self, profile: Profile) -> None:
        profile_file = self.profiles_dir / f"{profile.name}.json"
        try:
            fd = os.open(profile_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(profile.model_dump(), f, indent=2, default=str)
            os.chmod(profile_file, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to save profile: {e}")
