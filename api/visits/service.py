"""
Visit registry business logic.
"""

from __future__ import annotations

import logging

import asyncpg

from core import errors, transactions

from . import repository, schemas

logger = logging.getLogger(__name__)


def _to_person(row: dict) -> schemas.PersonResponse:
    return schemas.PersonResponse(id=int(row["id"]), name=str(row["name"]))


async def create_caregiver(pool: asyncpg.Pool, payload: schemas.CreatePersonRequest) -> schemas.PersonResponse:
    row = await repository.create_caregiver(pool, name=payload.name.strip())
    return _to_person(row)


async def create_patient(pool: asyncpg.Pool, payload: schemas.CreatePersonRequest) -> schemas.PersonResponse:
    row = await repository.create_patient(pool, name=payload.name.strip())
    return _to_person(row)


async def get_caregiver(pool: asyncpg.Pool, caregiver_id: int) -> schemas.PersonResponse:
    row = await repository.get_caregiver(pool, caregiver_id)
    if row is None:
        raise errors.DatabaseError(errors.ErrorKind.NOT_FOUND, "Caregiver not found.")
    return _to_person(row)


async def get_patient(pool: asyncpg.Pool, patient_id: int) -> schemas.PersonResponse:
    row = await repository.get_patient(pool, patient_id)
    if row is None:
        raise errors.DatabaseError(errors.ErrorKind.NOT_FOUND, "Patient not found.")
    return _to_person(row)


async def record_visits(
    pool: asyncpg.Pool,
    payload: schemas.RecordVisitsRequest,
) -> schemas.RecordVisitsResponse:
    """
    Insert all visits in one transaction; any failing row rolls back the batch.
    """
    rows = [(v.caregiver, v.patient, v.date) for v in payload.visits]

    async with transactions.transaction(pool) as tx:
        recorded = await repository.insert_visits(tx, rows)

    logger.info("visits_recorded count=%s", recorded)
    return schemas.RecordVisitsResponse(recorded=recorded)
