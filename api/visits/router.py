"""
Visit registry API endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, Path, status

from core.dependencies import get_pool

from . import schemas, service

router = APIRouter()


@router.post(
    "/caregivers",
    response_model=schemas.PersonResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_caregiver(
    request: schemas.CreatePersonRequest,
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.PersonResponse:
    return await service.create_caregiver(pool, request)


@router.post(
    "/patients",
    response_model=schemas.PersonResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_patient(
    request: schemas.CreatePersonRequest,
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.PersonResponse:
    return await service.create_patient(pool, request)


@router.post(
    "/visits",
    response_model=schemas.RecordVisitsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_visits(
    request: schemas.RecordVisitsRequest,
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.RecordVisitsResponse:
    """
    Record a batch of visits atomically.
    """
    return await service.record_visits(pool, request)


@router.get("/caregivers/{caregiver_id}", response_model=schemas.PersonResponse)
async def get_caregiver(
    caregiver_id: int = Path(..., ge=1),
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.PersonResponse:
    return await service.get_caregiver(pool, caregiver_id)


@router.get("/patients/{patient_id}", response_model=schemas.PersonResponse)
async def get_patient(
    patient_id: int = Path(..., ge=1),
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.PersonResponse:
    return await service.get_patient(pool, patient_id)
