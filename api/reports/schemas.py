"""
Pydantic schemas for the visit report.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CaregiverVisits(BaseModel):
    name: str
    patients: list[str] = Field(default_factory=list)


class Report(BaseModel):
    year: int
    caregivers: list[CaregiverVisits] = Field(default_factory=list)
