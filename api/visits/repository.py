"""
Visit registry persistence (raw SQL).
"""

from __future__ import annotations

import datetime as dt
from typing import Any

import asyncpg

from core import db, errors
from core.transactions import Transaction

INSERT_VISIT_SQL = "INSERT INTO visit (caregiver, patient, date) VALUES ($1, $2, $3)"


async def _insert_named(pool: asyncpg.Pool, table: str, name: str) -> dict[str, Any]:
    # `table` is one of the fixed names below, never request input.
    row = await db.fetch_one(
        pool,
        f"INSERT INTO {table} (name) VALUES ($1) RETURNING id, name",
        name,
    )
    if row is None:
        raise errors.DatabaseError(errors.ErrorKind.QUERY, f"Failed to create {table}.")
    return row


async def create_caregiver(pool: asyncpg.Pool, *, name: str) -> dict[str, Any]:
    return await _insert_named(pool, "caregiver", name)


async def create_patient(pool: asyncpg.Pool, *, name: str) -> dict[str, Any]:
    return await _insert_named(pool, "patient", name)


async def insert_visits(tx: Transaction, visits: list[tuple[int, int, dt.date]]) -> int:
    """
    Insert visit rows on an open transaction. Returns the number inserted.
    """
    return await db.exec_many_on_transaction(tx, INSERT_VISIT_SQL, visits)


async def _get_named(pool: asyncpg.Pool, table: str, record_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(pool, f"SELECT id, name FROM {table} WHERE id = $1", record_id)


async def get_caregiver(pool: asyncpg.Pool, caregiver_id: int) -> dict[str, Any] | None:
    return await _get_named(pool, "caregiver", caregiver_id)


async def get_patient(pool: asyncpg.Pool, patient_id: int) -> dict[str, Any] | None:
    return await _get_named(pool, "patient", patient_id)
