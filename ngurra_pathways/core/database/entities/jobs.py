"""
Job listing entities.

Tables:
- jobs: Listings posted by employers
- job_applications: One application per (job, applicant)
"""

from enum import Enum
from typing import Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base
from ..utils import new_id, utc_now


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    CASUAL = "CASUAL"
    INTERNSHIP = "INTERNSHIP"
    APPRENTICESHIP = "APPRENTICESHIP"


class ApplicationStatus(str, Enum):
    """Lifecycle of a job application."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    OFFERED = "offered"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class JobBase(Base):
    title: str = Field(max_length=200)
    company_name: Optional[str] = Field(default=None, max_length=200)
    description: str
    location: Optional[str] = Field(default=None, max_length=120, index=True)
    employment_type: str = Field(default=EmploymentType.FULL_TIME.value, max_length=32, index=True)
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    is_remote: bool = Field(default=False)
    closes_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())


class Job(JobBase, table=True):
    """Job listing.

    Table: jobs
    """

    __tablename__ = "jobs"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    employer_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    is_active: bool = Field(default=True, index=True)
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )

    def __repr__(self) -> str:
        return f"Job(id={self.id}, title={self.title})"


class JobApplication(Base, table=True):
    """Application of a user to a job.

    Table: job_applications
    """

    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_job_applications_job_applicant"),
        {"extend_existing": True},
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    job_id: str = Field(foreign_key="jobs.id", index=True, max_length=36)
    applicant_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    status: str = Field(default=ApplicationStatus.PENDING.value, max_length=20, index=True)
    cover_letter: Optional[str] = Field(default=None)
    resume_url: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None, description="Employer notes")
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())
    updated_at: NaiveDatetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=DateTime()
    )
