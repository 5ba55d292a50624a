"""Configuration models for browse-skill."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserConfig(BaseModel):
    """Settings for the persistent browser session."""

    profile_path: Path = Field(
        default=Path(".session"),
        description="User data directory holding cookies and storage between runs.",
    )
    headless: bool = False
    executable_path: Optional[Path] = None
    viewport_width: int = 1280
    viewport_height: int = 720
    debug_host: str = "localhost"
    debug_port: int = Field(default=9222, description="Remote debugging port used to attach and launch.")
    attach_probe_timeout: float = Field(
        default=1.0,
        description="Seconds to wait for the debug endpoint before launching a new browser.",
    )
    launch_timeout: float = Field(
        default=15.0,
        ge=0,
        description="Seconds a freshly started browser has to bring up its debug endpoint.",
    )

    @property
    def debug_endpoint(self) -> str:
        return f"http://{self.debug_host}:{self.debug_port}"


class TimeoutConfig(BaseModel):
    """Operation timeouts, in seconds."""

    navigation: float = 30.0
    selector: float = 10.0
    try_click: float = 2.0


class BrowseSkillConfig(BaseSettings):
    """Top-level configuration for the browse-skill CLI."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSE_SKILL_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    snapshot_max_chars: int = Field(
        default=5_000_000,
        description="Maximum number of markup characters returned by snapshot.",
    )
    result_path: Path = Field(
        default=Path("last_result.json"),
        description="File receiving the final result of every invocation.",
    )


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> BrowseSkillConfig:
    """Load configuration from an optional YAML file and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = BrowseSkillConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return BrowseSkillConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
