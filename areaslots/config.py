"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .adapters.http_store import HttpRecordStore
from .adapters.json_store import JsonFileStore
from .domain.slot_calculator import AlignmentPolicy
from .services.availability_service import RecordStoreProtocol


class StoreConfig(BaseModel):
    """Where owner records are kept."""
    backend: Literal["json", "http"] = "json"
    data_file: Path = Path("areaslots_data.json")
    base_url: str = ""
    api_token: str = ""
    timeout_seconds: float = 30.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "StoreConfig":
        """The http backend needs somewhere to talk to."""
        if self.backend == "http" and not self.base_url:
            raise ValueError("store.base_url is required when backend is 'http'")
        return self

    def create_store(self) -> RecordStoreProtocol:
        """Build the configured record store."""
        if self.backend == "http":
            return HttpRecordStore(
                base_url=self.base_url,
                api_token=self.api_token or None,
                timeout_seconds=self.timeout_seconds,
            )
        return JsonFileStore(self.data_file)


class SlotsConfig(BaseModel):
    """Default settings for slot generation."""
    duration_minutes: int = 60
    hour_grid_minutes: int = 60
    buffer_grid_minutes: int = 30
    buffer_tolerance_minutes: int = 1

    @field_validator("duration_minutes", "hour_grid_minutes", "buffer_grid_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and grids are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("buffer_tolerance_minutes")
    @classmethod
    def validate_tolerance(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"buffer_tolerance_minutes must be >= 0, got {value}")
        return value

    def get_alignment_policy(self) -> AlignmentPolicy:
        return AlignmentPolicy(
            hour_grid_minutes=self.hour_grid_minutes,
            buffer_grid_minutes=self.buffer_grid_minutes,
            buffer_tolerance_minutes=self.buffer_tolerance_minutes,
        )


class Owner(BaseModel):
    """Calendar owner reachable under a public handle."""
    handle: str
    owner_id: str
    name: str = ""

    def display_name(self) -> str:
        return self.name or self.handle


class AppConfig(BaseModel):
    """Application configuration."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    slots: SlotsConfig = Field(default_factory=SlotsConfig)
    cache_ttl_seconds: float = 60.0
    owners: List[Owner] = Field(default_factory=list)

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, value: float) -> float:
        """Zero disables the cache, negative values make no sense."""
        if value < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        return value

    @field_validator("owners")
    @classmethod
    def validate_owners(cls, value: List[Owner]) -> List[Owner]:
        """Ensure owner handles are unique."""
        seen_handles: set[str] = set()
        for owner in value:
            handle_key = owner.handle.lower()
            if handle_key in seen_handles:
                raise ValueError(f"Duplicate owner handle detected: {owner.handle}")
            seen_handles.add(handle_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``store.data_file`` is resolved against the directory
        holding the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        if not config.store.data_file.is_absolute():
            config.store.data_file = config_path.parent / config.store.data_file

        return config

    def find_owner_by_handle(self, handle: str) -> Owner | None:
        """Find an owner by their public handle."""
        for owner in self.owners:
            if owner.handle.lower() == handle.lower():
                return owner
        return None

    def resolve_owner(self, handle: str) -> str | None:
        """
        Resolve a public handle to a stable owner id.

        Returns None for unknown handles; callers treat that like an
        anonymous visitor and show no availability.
        """
        owner = self.find_owner_by_handle(handle)
        return owner.owner_id if owner else None


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
