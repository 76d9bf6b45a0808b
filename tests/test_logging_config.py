"""Tests for structlog configuration."""

import pytest
import structlog

from vocab_engine.logging_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_production_renders_json():
    configure_logging("production")
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_development_renders_console():
    configure_logging("development")
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


def test_env_variable_selects_mode(monkeypatch):
    monkeypatch.setenv("ENV", "Production")
    configure_logging()
    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_modes_share_processor_chain():
    configure_logging("production")
    production = structlog.get_config()["processors"]
    configure_logging("development")
    development = structlog.get_config()["processors"]
    assert production[:-1] == development[:-1]
    assert isinstance(production[-2], structlog.processors.TimeStamper)
