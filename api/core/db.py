"""
Async database access helpers (raw SQL) using asyncpg.

The pool is created by the application lifespan (see `api/main.py`) and handed
to routes through the `get_pool` dependency; nothing here holds it globally.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
- user-supplied values always go through placeholders, never into the SQL text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import asyncpg

from . import errors
from .settings import DatabaseSettings
from .transactions import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    command: str = ""
    row_count: int = 0


def _parse_status(status: str | None) -> tuple[str, int]:
    """
    Split a command tag such as "INSERT 0 3" or "SELECT 12" into (command, count).
    """
    parts = (status or "").split()
    if not parts:
        return "", 0
    count = int(parts[-1]) if parts[-1].isdigit() else 0
    return parts[0].upper(), count


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _on_connection_terminated(connection: asyncpg.Connection) -> None:
    # The pool replaces terminated connections on the next acquire.
    logger.error("pool_connection_terminated connection=%s", id(connection))


def _on_server_log(connection: asyncpg.Connection, message: asyncpg.PostgresLogMessage) -> None:
    logger.info("pool_server_message severity=%s message=%s", message.severity, message.message)


async def _init_connection(connection: asyncpg.Connection) -> None:
    connection.add_termination_listener(_on_connection_terminated)
    connection.add_log_listener(_on_server_log)


async def create_pool(settings: DatabaseSettings) -> asyncpg.Pool:
    logger.info("db_connection_settings %s", settings.describe())
    try:
        return await asyncpg.create_pool(
            **settings.connect_kwargs(),
            min_size=settings.min_connections,
            max_size=settings.max_connections,
            max_inactive_connection_lifetime=settings.idle_timeout_ms / 1000,
            timeout=settings.connect_timeout_ms / 1000,
            command_timeout=settings.command_timeout_s,
            init=_init_connection,
        )
    except errors.DRIVER_ERRORS as exc:
        logger.error("db_pool_create_failed error=%s", exc)
        raise errors.from_driver(exc) from exc


async def close_pool(pool: asyncpg.Pool | None) -> None:
    if pool is None:
        return None
    await pool.close()
    logger.info("db_pool_closed")


async def _run_on(connection: Any, sql: str, args: Sequence[Any]) -> QueryResult:
    stmt = await connection.prepare(sql)
    records = await stmt.fetch(*args)
    command, count = _parse_status(stmt.get_statusmsg())
    return QueryResult(
        rows=[_record_to_dict(r) for r in records],
        command=command,
        row_count=count,
    )


async def run_query(pool: asyncpg.Pool, sql: str, *args: Any) -> QueryResult:
    """
    Run one parameterized statement on a pooled connection.
    """
    logger.debug("run_query sql=%s args=%s", sql, args)
    try:
        async with pool.acquire() as connection:
            return await _run_on(connection, sql, args)
    except errors.DRIVER_ERRORS as exc:
        logger.error("run_query_failed error=%s sql=%s", exc, sql)
        raise errors.from_driver(exc) from exc


async def fetch_one(pool: asyncpg.Pool, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    result = await run_query(pool, sql, *args)
    return result.rows[0] if result.rows else None


async def fetch_all(pool: asyncpg.Pool, sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    result = await run_query(pool, sql, *args)
    return result.rows


async def execute(pool: asyncpg.Pool, sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return its command tag.
    Multi-statement scripts are allowed when no arguments are passed.
    """
    logger.debug("execute sql=%s args=%s", sql, args)
    try:
        return await pool.execute(sql, *args)
    except errors.DRIVER_ERRORS as exc:
        logger.error("execute_failed error=%s sql=%s", exc, sql)
        raise errors.from_driver(exc) from exc


async def exec_on_transaction(tx: Transaction, sql: str, *args: Any) -> QueryResult:
    """
    Run one parameterized statement inside a begun transaction.
    """
    connection = tx.connection
    logger.debug("exec_on_transaction sql=%s args=%s", sql, args)
    try:
        result = await _run_on(connection, sql, args)
    except errors.DRIVER_ERRORS as exc:
        logger.error("exec_on_transaction_failed error=%s sql=%s args=%s", exc, sql, args)
        raise errors.from_driver(exc) from exc
    logger.debug("exec_on_transaction_done command=%s rows=%s", result.command, result.row_count)
    return result


async def exec_many_on_transaction(
    tx: Transaction,
    sql: str,
    rows: Iterable[Sequence[Any]],
) -> int:
    """
    Run `sql` once per parameter row, in order, inside a begun transaction.

    Stops at the first failing row. An empty `rows` is rejected before any
    statement runs. Returns the number of statements executed.
    """
    rows = list(rows)
    if not rows:
        logger.error("exec_many_on_transaction_failed reason=no_rows")
        raise errors.caller_misuse("exec_many_on_transaction() called with no rows.")

    connection = tx.connection
    logger.debug("exec_many_on_transaction sql=%s rows=%s", sql, len(rows))
    executed = 0
    for row in rows:
        try:
            await connection.execute(sql, *row)
        except errors.DRIVER_ERRORS as exc:
            logger.error(
                "exec_many_on_transaction_failed error=%s index=%s row=%s",
                exc,
                executed,
                row,
            )
            raise errors.from_driver(exc) from exc
        executed += 1
    return executed
