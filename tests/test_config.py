"""Tests for engine settings loading and validation."""

import pytest
from pydantic import ValidationError

from vocab_engine import config
from vocab_engine.config import Settings, flatten_yaml_settings, get_settings


class TestDefaults:
    def test_algorithm_defaults(self):
        settings = Settings()
        assert settings.min_ease_factor == 1.3
        assert settings.max_ease_factor == 5.0
        assert settings.default_ease_factor == 2.5
        assert settings.max_interval_days == 365
        assert settings.learned_threshold_days == 21
        assert settings.k_factor == 32
        assert settings.min_rating == 100
        assert settings.max_rating == 3000
        assert settings.match_tolerance_rating == 200

    def test_streak_defaults(self):
        settings = Settings()
        assert settings.freeze_milestone_days == 7
        assert settings.max_freezes == 3
        assert settings.default_timezone == "Europe/Istanbul"
        assert settings.at_risk_minutes == 120

    def test_frozen(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.k_factor = 10


class TestSources:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("VOCAB_ENGINE_K_FACTOR", "16")
        assert Settings().k_factor == 16

    def test_init_beats_env(self, monkeypatch):
        monkeypatch.setenv("VOCAB_ENGINE_K_FACTOR", "16")
        assert Settings(k_factor=24).k_factor == 24

    def test_yaml_file(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "settings.yaml").write_text(
            "algorithm:\n  max_interval: 180\nstreak:\n  max_freezes: 5\n",
            encoding="utf-8",
        )
        monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
        settings = Settings()
        assert settings.max_interval_days == 180
        assert settings.max_freezes == 5

    def test_missing_yaml_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
        assert Settings().max_interval_days == 365

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "settings.yaml").write_text(
            "streak:\n  max_freezes: 5\n", encoding="utf-8"
        )
        monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
        monkeypatch.setenv("VOCAB_ENGINE_MAX_FREEZES", "2")
        assert Settings().max_freezes == 2

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestFlattenYaml:
    def test_maps_section_keys(self):
        flat = flatten_yaml_settings(
            {
                "algorithm": {"max_interval": 200, "match_tolerance": 150},
                "streak": {"default_timezone": "UTC"},
                "learning": {"review_batch_size": 5},
                "unrelated": {"anything": 1},
            }
        )
        assert flat == {
            "max_interval_days": 200,
            "match_tolerance_rating": 150,
            "default_timezone": "UTC",
            "review_batch_size": 5,
        }

    def test_empty_sections(self):
        assert flatten_yaml_settings({"algorithm": None}) == {}


class TestValidation:
    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            Settings(default_timezone="Nowhere/Special")

    def test_inverted_ease_bounds(self):
        with pytest.raises(ValidationError):
            Settings(min_ease_factor=3.0, max_ease_factor=2.0)

    def test_default_ease_outside_bounds(self):
        with pytest.raises(ValidationError):
            Settings(default_ease_factor=6.0)

    def test_inverted_rating_bounds(self):
        with pytest.raises(ValidationError):
            Settings(min_rating=2000, max_rating=1000)

    def test_negative_k_factor(self):
        with pytest.raises(ValidationError):
            Settings(k_factor=-1)
