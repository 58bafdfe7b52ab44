import logging
from types import SimpleNamespace

import pytest

from core import db, errors
from core.settings import DatabaseSettings


class ListenerConnection:
    def __init__(self):
        self.termination_listeners = []
        self.log_listeners = []

    def add_termination_listener(self, callback):
        self.termination_listeners.append(callback)

    def add_log_listener(self, callback):
        self.log_listeners.append(callback)


def test_create_pool_passes_settings_to_asyncpg(run, monkeypatch):
    captured = {}
    sentinel = object()

    async def fake_create_pool(**kwargs):
        captured.update(kwargs)
        return sentinel

    monkeypatch.setattr(db.asyncpg, "create_pool", fake_create_pool)
    settings = DatabaseSettings(
        user="care",
        password="pw",
        database="visits",
        host="db",
        port=6543,
        min_connections=2,
        max_connections=7,
        idle_timeout_ms=45_000,
        connect_timeout_ms=2_500,
        command_timeout_s=12,
    )

    assert run(db.create_pool(settings)) is sentinel
    assert captured == {
        "user": "care",
        "password": "pw",
        "database": "visits",
        "host": "db",
        "port": 6543,
        "min_size": 2,
        "max_size": 7,
        "max_inactive_connection_lifetime": 45.0,
        "timeout": 2.5,
        "command_timeout": 12,
        "init": db._init_connection,
    }


def test_create_pool_uses_dsn_when_url_is_set(run, monkeypatch):
    captured = {}

    async def fake_create_pool(**kwargs):
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(db.asyncpg, "create_pool", fake_create_pool)

    run(db.create_pool(DatabaseSettings(url="postgresql://care@db/visits")))

    assert captured["dsn"] == "postgresql://care@db/visits"
    assert "host" not in captured


def test_create_pool_failure_is_connectivity_error(run, monkeypatch):
    async def fake_create_pool(**kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(db.asyncpg, "create_pool", fake_create_pool)

    with pytest.raises(errors.DatabaseError) as excinfo:
        run(db.create_pool(DatabaseSettings()))

    assert excinfo.value.kind is errors.ErrorKind.CONNECTIVITY
    assert "connection refused" in excinfo.value.message


def test_terminated_connection_is_only_logged(run, caplog):
    connection = ListenerConnection()
    run(db._init_connection(connection))

    (on_terminated,) = connection.termination_listeners
    with caplog.at_level(logging.ERROR, logger="core.db"):
        on_terminated(connection)

    assert "pool_connection_terminated" in caplog.text


def test_server_messages_are_logged(run, caplog):
    connection = ListenerConnection()
    run(db._init_connection(connection))

    (on_message,) = connection.log_listeners
    with caplog.at_level(logging.INFO, logger="core.db"):
        on_message(connection, SimpleNamespace(severity="NOTICE", message="relation already exists"))

    assert "relation already exists" in caplog.text
