"""
Report persistence (raw SQL).
"""

from __future__ import annotations

from datetime import date
from typing import Any

import asyncpg

from core import db


def year_bounds(year: int) -> tuple[date, date]:
    """
    Half-open range [Jan 1 of `year`, Jan 1 of `year + 1`).
    """
    return date(year, 1, 1), date(year + 1, 1, 1)


async def list_visits_for_year(pool: asyncpg.Pool, year: int) -> list[dict[str, Any]]:
    """
    One row per visit in the year: caregiver, patient and visit date.
    """
    start, end = year_bounds(year)
    return await db.fetch_all(
        pool,
        """
        SELECT
          caregiver.id   AS caregiver_id,
          caregiver.name AS caregiver_name,
          patient.id     AS patient_id,
          patient.name   AS patient_name,
          visit.date     AS visit_date
        FROM caregiver
        JOIN visit ON visit.caregiver = caregiver.id
        JOIN patient ON patient.id = visit.patient
        WHERE visit.date >= $1
          AND visit.date < $2
        ORDER BY visit.date, visit.id
        """,
        start,
        end,
    )
