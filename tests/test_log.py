from __future__ import annotations

import logging

import pytest

from deprecheck.log import configure_logging, get_logger


def test_get_logger_uses_package_hierarchy():
    assert get_logger("deprecheck.graph").name == "deprecheck.graph"
    assert get_logger("plugins").name == "deprecheck.plugins"
    assert get_logger().name == "deprecheck"


def test_configure_logging_is_idempotent(monkeypatch):
    monkeypatch.delenv("DEPRECHECK_LOG_LEVEL", raising=False)
    configure_logging("debug")
    logger = configure_logging()

    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert not logger.propagate


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("DEPRECHECK_LOG_LEVEL", "info")
    assert configure_logging().level == logging.INFO


def test_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")
