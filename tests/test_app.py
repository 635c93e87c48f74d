"""
Tests for the application factory, configuration and logging setup.
"""

import json
import logging

import pytest

from app import create_app
from app.middleware.logging_config import JSONFormatter, ReadableFormatter


def test_testing_config(app):
    assert app.config["TESTING"] is True
    assert app.config["BCRYPT_ROUNDS"] == 4
    assert app.config["SEED_DEMO_DATA"] is False
    assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite://"


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app("production")


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.submission_id = 7
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "hello world"
    assert payload["submission_id"] == 7


def test_readable_formatter_appends_request_context():
    record = logging.LogRecord("app.timer", logging.INFO, __file__, 1, "Timer started", (), None)
    record.user_id = 3
    record.submission_id = 7
    record.duration_ms = 12.4
    assert ReadableFormatter().format(record).endswith("Timer started [user=3 sub=7 12ms]")
