"""Process settings and the per-turn conversation config document."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Protocol

import yaml
from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from multivocal.errors import ConfigLoadError
from multivocal.voice import Voice

PATH_SEPARATOR = "/"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MULTIVOCAL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: Path | None = Field(None, description="YAML conversation config document")
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "console"] = Field(default="default", description="Log output profile")


def get_settings(config_path: Path | None = None) -> Settings:
    """Get application settings.

    Args:
        config_path: Optional override for the conversation config path

    Returns:
        Settings instance
    """
    if config_path is None:
        return Settings()
    return Settings(config_path=config_path)


class ConfigDocument:
    """Read-only view over one loaded conversation config mapping."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._voices: list[Voice] | None = None

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def section(self, name: str) -> Mapping[str, Any]:
        value = self._data.get(name)
        if isinstance(value, Mapping):
            return value
        return {}

    def lookup(self, path: str) -> Any:
        """Walk nested sections along a `Section/Key` path, None when absent."""

        node: Any = self._data
        for part in path.split(PATH_SEPARATOR):
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node

    @property
    def voices(self) -> list[Voice]:
        if self._voices is None:
            raw = self._data.get("Voice") or []
            if not isinstance(raw, list):
                raw = [raw]
            self._voices = [Voice.from_config(item) for item in raw]
        return list(self._voices)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


class ConfigSource(Protocol):
    """Asynchronous provider of the conversation config document."""

    async def get(self) -> ConfigDocument: ...


class StaticConfigSource:
    """Serve one in-memory config mapping for every turn."""

    def __init__(self, data: Mapping[str, Any] | ConfigDocument | None = None) -> None:
        if isinstance(data, ConfigDocument):
            self._document = data
        else:
            self._document = ConfigDocument(data)

    async def get(self) -> ConfigDocument:
        return self._document


class YamlConfigSource:
    """Load the config document from a YAML file on every turn."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def get(self) -> ConfigDocument:
        return await asyncio.to_thread(self._read)

    def _read(self) -> ConfigDocument:
        try:
            payload = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("config.load_failed path={} error={}", self.path, exc)
            raise ConfigLoadError(f"failed to load config from {self.path}: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ConfigLoadError(f"config document {self.path} must be a mapping")
        document = ConfigDocument(payload)
        try:
            document.voices
        except ValidationError as exc:
            raise ConfigLoadError(f"invalid Voice section in {self.path}: {exc}") from exc
        return document
