"""
Liveness and version endpoints, mounted at the root rather than under
``/api/v1`` so load balancers can check them without knowing the API prefix.
"""

from fastapi import APIRouter

from ngurra_pathways import __version__
from ngurra_pathways.core.models.io.common import HealthStatus, VersionInfo
from ngurra_pathways.server.core.constant import SCHEMA_VERSION

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Liveness Check",
    description="Answers as long as the process can serve requests. The database is not touched.",
)
async def health_check() -> HealthStatus:
    return HealthStatus()


@router.get(
    "/version",
    response_model=VersionInfo,
    summary="Package Version",
    description="Installed package version and the REST schema generation it serves.",
)
async def version() -> VersionInfo:
    return VersionInfo(version=__version__, schema_version=SCHEMA_VERSION)
