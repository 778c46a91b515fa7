import logging

import pytest

from gdirsync.audit.logger import configure_logging


def _capture(monkeypatch):
    captured = {}

    def fake_basicConfig(*, level=None, **kwargs):
        captured["level"] = level

    import structlog
    orig_make = structlog.make_filtering_bound_logger

    def fake_make_filtering_bound_logger(level):
        captured["structlog_level"] = level
        return orig_make(level)

    monkeypatch.setattr(logging, "basicConfig", fake_basicConfig)
    monkeypatch.setattr(structlog, "make_filtering_bound_logger", fake_make_filtering_bound_logger)
    return captured


def test_configure_logging_uses_stdlib_levels(monkeypatch):
    captured = _capture(monkeypatch)

    configure_logging(log_level="INFO", json_format=True)

    assert captured["level"] == logging.INFO
    assert captured["structlog_level"] == logging.INFO


@pytest.mark.parametrize(
    "log_level, expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("nonsense", logging.INFO)],
)
def test_configure_logging_level_names(monkeypatch, log_level, expected):
    captured = _capture(monkeypatch)

    configure_logging(log_level=log_level)

    assert captured["level"] == expected
    assert captured["structlog_level"] == expected


def test_configure_logging_numeric_level(monkeypatch):
    captured = _capture(monkeypatch)

    configure_logging(log_level=20, json_format=True)

    assert captured["level"] == 20
    assert captured["structlog_level"] == 20


def test_configure_logging_quiets_http_clients(monkeypatch):
    _capture(monkeypatch)

    configure_logging(log_level="DEBUG")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
