"""
Job listing and application I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ngurra_pathways.core.database.entities.jobs import ApplicationStatus, EmploymentType

from .common import Pagination


class JobCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10)
    company_name: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=120)
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    is_remote: bool = False
    closes_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_salary_range(self) -> "JobCreate":
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salary_min must not exceed salary_max")
        return self


class JobUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10)
    company_name: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=120)
    employment_type: Optional[EmploymentType] = None
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    is_remote: Optional[bool] = None
    is_active: Optional[bool] = None
    closes_at: Optional[datetime] = None


class JobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employer_id: str
    title: str
    company_name: Optional[str] = None
    description: str
    location: Optional[str] = None
    employment_type: str
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    is_remote: bool
    is_active: bool
    closes_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class JobList(BaseModel):
    data: List[JobRead]
    pagination: Pagination


class ApplicationCreate(BaseModel):
    job_id: str
    cover_letter: Optional[str] = Field(default=None, max_length=10000)
    resume_url: Optional[str] = None


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = Field(default=None, max_length=5000)


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    applicant_id: str
    status: str
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ApplicationList(BaseModel):
    data: List[ApplicationRead]
    pagination: Pagination


class ApplicationStats(BaseModel):
    total: int
    recent_applications: int = Field(description="Applications created in the last 7 days")
    by_status: Dict[str, int]
