"""Engine configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# YAML section -> {yaml key: Settings field}
_YAML_SECTIONS: dict[str, dict[str, str]] = {
    "algorithm": {
        "min_ease_factor": "min_ease_factor",
        "max_ease_factor": "max_ease_factor",
        "default_ease_factor": "default_ease_factor",
        "max_interval": "max_interval_days",
        "learned_threshold_days": "learned_threshold_days",
        "k_factor": "k_factor",
        "min_rating": "min_rating",
        "max_rating": "max_rating",
        "default_rating": "default_rating",
        "match_tolerance": "match_tolerance_rating",
    },
    "streak": {
        "freeze_milestone_days": "freeze_milestone_days",
        "max_freezes": "max_freezes",
        "default_timezone": "default_timezone",
        "at_risk_minutes": "at_risk_minutes",
    },
    "learning": {
        "review_batch_size": "review_batch_size",
        "new_word_batch_size": "new_word_batch_size",
    },
}


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


def flatten_yaml_settings(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten the sectioned YAML layout into Settings field names."""
    flattened = {}
    for section, keys in _YAML_SECTIONS.items():
        values = data.get(section) or {}
        for yaml_key, field_name in keys.items():
            flattened[field_name] = values.get(yaml_key)
    return {k: v for k, v in flattened.items() if v is not None}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return flatten_yaml_settings(data)


class Settings(BaseSettings):
    """Tuning knobs for the scheduler, matcher and streak tracker.

    Components receive an instance through their constructor; nothing in
    the engine reads process-wide configuration on its own.
    """

    model_config = SettingsConfigDict(
        env_prefix="VOCAB_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # SM-2
    min_ease_factor: float = Field(default=1.3, gt=0)
    max_ease_factor: float = Field(default=5.0, gt=0)
    default_ease_factor: float = Field(default=2.5, gt=0)
    max_interval_days: int = Field(default=365, ge=1)
    learned_threshold_days: int = Field(default=21, ge=1)

    # Elo
    k_factor: int = Field(default=32, ge=0)
    min_rating: int = Field(default=100)
    max_rating: int = Field(default=3000)
    default_rating: int = Field(default=1000)
    match_tolerance_rating: int = Field(default=200, ge=0)

    # Streak
    freeze_milestone_days: int = Field(default=7, ge=1)
    max_freezes: int = Field(default=3, ge=0)
    default_timezone: str = Field(default="Europe/Istanbul")
    at_risk_minutes: int = Field(default=120, ge=0)

    # Word selection
    review_batch_size: int = Field(default=10, ge=1)
    new_word_batch_size: int = Field(default=20, ge=1)

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown default timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if self.min_ease_factor > self.max_ease_factor:
            raise ValueError("min_ease_factor must not exceed max_ease_factor")
        if not self.min_ease_factor <= self.default_ease_factor <= self.max_ease_factor:
            raise ValueError("default_ease_factor must lie within the ease bounds")
        if self.min_rating > self.max_rating:
            raise ValueError("min_rating must not exceed max_rating")
        if not self.min_rating <= self.default_rating <= self.max_rating:
            raise ValueError("default_rating must lie within the rating bounds")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get engine settings singleton."""
    return Settings()
