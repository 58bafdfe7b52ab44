"""
Schema bootstrap: creates the caregiver, patient and visit tables at startup.

Each script runs on its own; one failing script is logged and the remaining ones
still run. The caller gets a `BootstrapResult` and decides whether to serve.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import asyncpg

from . import db, errors

# Order matters: visit references caregiver and patient.
SCHEMA_TABLES: tuple[str, ...] = ("caregiver", "patient", "visit")

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    created: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def read_schema_script(schema_dir: Path, table: str) -> str:
    return (Path(schema_dir) / f"{table}.sql").read_text(encoding="utf-8")


async def bootstrap_schema(
    pool: asyncpg.Pool,
    schema_dir: Path,
    tables: tuple[str, ...] = SCHEMA_TABLES,
) -> BootstrapResult:
    result = BootstrapResult()
    for table in tables:
        # ValueError covers scripts that are not valid UTF-8.
        try:
            script = read_schema_script(schema_dir, table)
            await db.execute(pool, script)
        except (OSError, ValueError, errors.DatabaseError) as exc:
            logger.error("schema_bootstrap_failed table=%s error=%s", table, exc)
            result.failed[table] = str(exc)
            continue
        logger.info("schema_bootstrap_ok table=%s", table)
        result.created.append(table)
    return result
