"""Tests for LoggingConfig."""

import logging

import pytest

from http_trace.core.logging.config import LogFormat, LoggingConfig, LogLevel


def test_defaults():
    config = LoggingConfig()
    assert config.level == LogLevel.INFO
    assert config.format == LogFormat.TEXT
    assert config.stream == "stderr"
    assert config.file_path is None
    assert config.propagate is False
    assert config.has_output is True


def test_create_normalizes_case():
    config = LoggingConfig.create(level="debug", format="JSON")
    assert config.level == LogLevel.DEBUG
    assert config.format == LogFormat.JSON


def test_create_unknown_level():
    with pytest.raises(ValueError):
        LoggingConfig.create(level="VERBOSE")


def test_level_as_int():
    assert LogLevel.DEBUG.as_int == logging.DEBUG
    assert LogLevel.CRITICAL.as_int == logging.CRITICAL


def test_unknown_stream():
    with pytest.raises(ValueError, match="stream must be one of"):
        LoggingConfig.create(stream="syslog")


def test_propagate_only_has_no_output():
    config = LoggingConfig.create(stream=None, propagate=True)
    assert config.has_output is False


def test_invalid_rotation_settings():
    with pytest.raises(ValueError, match="rotate_bytes"):
        LoggingConfig.create(rotate_bytes=0)
    with pytest.raises(ValueError, match="rotate_backups"):
        LoggingConfig.create(rotate_backups=-1)


def test_extra_fields():
    config = LoggingConfig.create(extra_fields={"service": "billing"})
    assert config.extra_fields == {"service": "billing"}
