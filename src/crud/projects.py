"""CRUD operations for projects and their requirements documents."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.documents import Document
from models.projects import Project


async def get_project(db: AsyncSession, project_id: UUID) -> Project | None:
    """Get a project by ID.

    Args:
        db: Database session
        project_id: Project ID to retrieve

    Returns:
        Project instance or None if not found
    """
    result = await db.execute(select(Project).where(Project.id == project_id))
    return result.scalar_one_or_none()


async def get_project_documents(db: AsyncSession, project_id: UUID) -> list[Document]:
    """Get all requirements documents of a project, oldest first."""
    query = (
        select(Document)
        .where(Document.project_id == project_id)
        .order_by(Document.created_at, Document.filename)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def set_project_status(db: AsyncSession, project_id: UUID, status: str) -> int:
    """Set the status of a project without committing.

    The caller owns the transaction so the status change can be committed
    together with other writes.

    Returns:
        Number of rows updated (0 when the project does not exist)
    """
    result = await db.execute(
        update(Project).where(Project.id == project_id).values(status=status)
    )
    return result.rowcount or 0
