"""
Job Listing API Endpoints.

Public job search plus employer-side create, update and deactivate.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ngurra_pathways.core.database.entities.jobs import EmploymentType
from ngurra_pathways.core.database.entities.users import User, UserType
from ngurra_pathways.core.models.io.jobs import JobCreate, JobList, JobRead, JobUpdate
from ngurra_pathways.server.services.deps import CurrentUser, DBSession, OptionalUser, Paging, require_roles
from ngurra_pathways.server.services.jobs import JobService

router = APIRouter()


@router.get(
    "",
    response_model=JobList,
    summary="Search Jobs",
    description="List active jobs, newest first, with optional filters.",
    response_description="A page of jobs with pagination metadata.",
)
async def list_jobs(
    session: DBSession,
    paging: Paging,
    q: Optional[str] = Query(default=None, max_length=100, description="Text in title, description or company"),
    location: Optional[str] = Query(default=None, max_length=120),
    employment_type: Optional[EmploymentType] = Query(default=None),
    is_remote: Optional[bool] = Query(default=None),
    employer_id: Optional[str] = Query(default=None),
) -> JobList:
    """
    Search the job board.

    - **q**: Free text matched against title, description and company name.
    - **location**: Substring of the job location.
    - **employment_type**: FULL_TIME, PART_TIME, CONTRACT, CASUAL, INTERNSHIP or APPRENTICESHIP.
    - **is_remote**: Only remote (or only on-site) jobs.
    """
    jobs, total = await JobService(session).search(
        paging,
        q=q,
        location=location,
        employment_type=employment_type.value if employment_type else None,
        is_remote=is_remote,
        employer_id=employer_id,
    )
    return JobList(data=[JobRead.model_validate(j) for j in jobs], pagination=paging.envelope(total))


@router.get(
    "/{job_id}",
    response_model=JobRead,
    summary="Get Job",
    description="Retrieve a job. Inactive jobs are only visible to their employer and admins.",
    responses={404: {"description": "Job not found"}},
)
async def get_job(job_id: str, session: DBSession, viewer: OptionalUser) -> JobRead:
    return JobRead.model_validate(await JobService(session).get(job_id, viewer))


@router.post(
    "",
    response_model=JobRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post Job",
    description="Create a job listing. Companies are limited by their subscription tier.",
    responses={
        201: {"description": "Job created"},
        403: {"description": "Not an employer, or the tier's job limit is reached"},
    },
)
async def create_job(
    data: JobCreate,
    session: DBSession,
    employer: User = Depends(require_roles(UserType.COMPANY, UserType.ADMIN)),
) -> JobRead:
    return JobRead.model_validate(await JobService(session).create(employer, data))


@router.patch(
    "/{job_id}",
    response_model=JobRead,
    summary="Update Job",
    description="Partially update a job. Owner or admin only.",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Job not found"}},
)
async def update_job(job_id: str, data: JobUpdate, user: CurrentUser, session: DBSession) -> JobRead:
    return JobRead.model_validate(await JobService(session).update(user, job_id, data))


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close Job",
    description="Deactivate a job so it no longer accepts applications.",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Job not found"}},
)
async def delete_job(job_id: str, user: CurrentUser, session: DBSession):
    await JobService(session).deactivate(user, job_id)
