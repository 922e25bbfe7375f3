"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from areaslots.adapters.http_store import HttpRecordStore
from areaslots.adapters.json_store import JsonFileStore
from areaslots.config import AppConfig, SlotsConfig, StoreConfig


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.cache_ttl_seconds == 60
        assert config.slots.duration_minutes == 60
        assert config.store.backend == "json"

    def test_load_from_yaml_resolves_data_file(self, tmp_path):
        config_path = _write(
            tmp_path / "config.yaml",
            "store:\n"
            "  data_file: data/records.json\n"
            "owners:\n"
            "  - handle: anna\n"
            "    owner_id: owner-anna\n",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.store.data_file == tmp_path / "data" / "records.json"
        assert config.resolve_owner("ANNA") == "owner-anna"
        assert config.resolve_owner("bob") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_path = _write(tmp_path / "config.yaml", "owners: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_root_must_be_mapping(self, tmp_path):
        config_path = _write(tmp_path / "config.yaml", "- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_path)

    def test_duplicate_owner_handles(self):
        with pytest.raises(ValidationError, match="Duplicate owner handle"):
            AppConfig(
                owners=[
                    {"handle": "anna", "owner_id": "1"},
                    {"handle": "Anna", "owner_id": "2"},
                ]
            )

    def test_negative_cache_ttl(self):
        with pytest.raises(ValidationError):
            AppConfig(cache_ttl_seconds=-1)


class TestSlotsConfig:
    """Tests for SlotsConfig."""

    def test_alignment_policy(self):
        policy = SlotsConfig(hour_grid_minutes=15, buffer_tolerance_minutes=0).get_alignment_policy()

        assert policy.hour_grid_minutes == 15
        assert policy.buffer_grid_minutes == 30
        assert policy.buffer_tolerance_minutes == 0

    def test_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            SlotsConfig(duration_minutes=0)


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_json_store(self, tmp_path):
        store = StoreConfig(data_file=tmp_path / "d.json").create_store()

        assert isinstance(store, JsonFileStore)

    def test_http_store(self):
        store = StoreConfig(backend="http", base_url="https://records.example.com").create_store()

        assert isinstance(store, HttpRecordStore)

    def test_http_requires_base_url(self):
        with pytest.raises(ValidationError, match="base_url"):
            StoreConfig(backend="http")
