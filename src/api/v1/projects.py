from uuid import UUID

from fastapi import APIRouter

from core.exceptions import ProjectNotFoundError
from crud.generated_files import list_generated_files
from crud.projects import get_project
from dependencies.db import DbSession
from schemas.api import ApiResponse
from schemas.generation import GeneratedFileOut, ProjectFilesResponse


router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "/{project_id}/files",
    response_model=ApiResponse[ProjectFilesResponse],
)
async def get_project_files(
    project_id: UUID, db: DbSession
) -> ApiResponse[ProjectFilesResponse]:
    """Return the committed generated files of a project."""
    project = await get_project(db, project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project {project_id} not found")

    files = await list_generated_files(db, project_id)
    return ApiResponse(
        success=True,
        data=ProjectFilesResponse(
            project_id=project.id,
            status=project.status,
            files=[GeneratedFileOut.model_validate(f) for f in files],
        ),
        message="Generated files retrieved",
    )
