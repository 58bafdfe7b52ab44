"""
Visit report API endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, Path

from core.dependencies import get_pool

from . import schemas, service

router = APIRouter()

# date(year + 1, 1, 1) must stay representable.
MIN_YEAR = 1
MAX_YEAR = 9998


@router.get("/report/{year}", response_model=schemas.Report)
async def get_report(
    year: int = Path(..., ge=MIN_YEAR, le=MAX_YEAR),
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.Report:
    return await service.get_report(pool, year)
