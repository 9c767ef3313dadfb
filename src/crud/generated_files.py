"""CRUD operations for generated files."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.generated_files import GeneratedFile
from services.generation.models import CommittedFile


async def replace_generated_files(
    db: AsyncSession, project_id: UUID, files: Iterable[CommittedFile]
) -> list[GeneratedFile]:
    """Replace all generated files of a project without committing.

    Args:
        db: Database session (the caller owns the transaction)
        project_id: Owning project
        files: Files to store, one row each

    Returns:
        The new GeneratedFile rows, flushed but not committed
    """
    await db.execute(delete(GeneratedFile).where(GeneratedFile.project_id == project_id))
    rows = [
        GeneratedFile(
            project_id=project_id,
            filename=f.name,
            file_path=f.name,
            file_type=f.file_type,
            content=f.content,
        )
        for f in files
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def list_generated_files(db: AsyncSession, project_id: UUID) -> list[GeneratedFile]:
    """Get the generated files of a project ordered by path."""
    query = (
        select(GeneratedFile)
        .where(GeneratedFile.project_id == project_id)
        .order_by(GeneratedFile.file_path)
    )
    result = await db.execute(query)
    return list(result.scalars().all())
