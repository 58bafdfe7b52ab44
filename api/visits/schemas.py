"""
Visit registry API schemas (request/response models).
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class CreatePersonRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class PersonResponse(BaseModel):
    id: int
    name: str


class VisitIn(BaseModel):
    caregiver: int = Field(..., ge=1)
    patient: int = Field(..., ge=1)
    date: dt.date


class RecordVisitsRequest(BaseModel):
    visits: list[VisitIn] = Field(..., min_length=1, max_length=1000)


class RecordVisitsResponse(BaseModel):
    recorded: int
