import json
import logging

from app.core.config import Settings
from app.core.context import get_request_id, request_id_ctx, set_request_id
from app.core.logging_config import JSONFormatter, setup_logging


def test_database_uri_defaults_to_sqlite(monkeypatch):
    monkeypatch.delenv("SQLALCHEMY_DATABASE_URI", raising=False)
    monkeypatch.delenv("POSTGRES_SERVER", raising=False)

    settings = Settings(_env_file=None)
    assert settings.SQLALCHEMY_DATABASE_URI == "sqlite+aiosqlite:///./data/shop.db"
    assert settings.DEFAULT_ROW_CAP == 1000


def test_database_uri_assembled_from_postgres_parts(monkeypatch):
    monkeypatch.delenv("SQLALCHEMY_DATABASE_URI", raising=False)

    settings = Settings(
        _env_file=None,
        POSTGRES_SERVER="db",
        POSTGRES_USER="shop",
        POSTGRES_PASSWORD="secret",
        POSTGRES_DB="orders",
    )
    assert settings.SQLALCHEMY_DATABASE_URI == "postgresql+asyncpg://shop:secret@db:5432/orders"


def test_row_caps_from_environment(monkeypatch):
    monkeypatch.setenv("DEFAULT_ROW_CAP", "50")
    monkeypatch.setenv("JSON_LOGS", "false")

    settings = Settings(_env_file=None)
    assert settings.DEFAULT_ROW_CAP == 50
    assert settings.LOG_JSON is False


def test_json_formatter_includes_request_id_and_extras():
    token = request_id_ctx.set(None)
    try:
        assert get_request_id() == "n/a"
        request_id = set_request_id("req-42")

        record = logging.LogRecord(
            name="adapters.persistence.orm.search_repository",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="Search finished",
            args=(),
            exc_info=None,
        )
        record.strategy = "JOIN_FOLD"
        record.round_trips = 1

        payload = json.loads(JSONFormatter().format(record))
    finally:
        request_id_ctx.reset(token)

    assert request_id == "req-42"
    assert payload["requestId"] == "req-42"
    assert payload["level"] == "INFO"
    assert payload["message"] == "Search finished"
    assert payload["strategy"] == "JOIN_FOLD"
    assert payload["round_trips"] == 1


def test_set_request_id_generates_one():
    token = request_id_ctx.set(None)
    try:
        generated = set_request_id()
        assert generated and get_request_id() == generated
    finally:
        request_id_ctx.reset(token)


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(level="DEBUG", json_output=True)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
