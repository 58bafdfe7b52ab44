"""
Visit report business logic.

The report groups visit rows by caregiver name. Groups keep the order in which
each caregiver first appears in the rows, and every row adds one patient entry
(a patient visited twice is listed twice).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import asyncpg

from . import repository, schemas

logger = logging.getLogger(__name__)


def group_by_caregiver(rows: Iterable[Mapping[str, Any]]) -> list[schemas.CaregiverVisits]:
    groups: dict[str, list[str]] = {}
    for row in rows:
        name = str(row["caregiver_name"])
        groups.setdefault(name, []).append(str(row["patient_name"]))
    return [schemas.CaregiverVisits(name=name, patients=patients) for name, patients in groups.items()]


def build_report(year: int, rows: Iterable[Mapping[str, Any]]) -> schemas.Report:
    return schemas.Report(year=year, caregivers=group_by_caregiver(rows))


async def get_report(pool: asyncpg.Pool, year: int) -> schemas.Report:
    rows = await repository.list_visits_for_year(pool, year)
    report = build_report(year, rows)
    logger.info(
        "report_built year=%s visits=%s caregivers=%s",
        year,
        len(rows),
        len(report.caregivers),
    )
    return report
