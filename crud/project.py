"""
ProjectRepository for database operations on Project model
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from database_models import Project


class ProjectRepository:
    """
    Repository class for Project database operations.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_project(self, project_data: dict) -> Project:
        """
        Create a new project.

        Required columns are enforced by the database: a missing title
        surfaces as an IntegrityError from the flush.

        Args:
            project_data: Column values keyed by Project attribute name

        Returns:
            Created Project object
        """
        project = Project(**project_data)
        self.db.add(project)
        await self.db.flush()
        await self.db.refresh(project)
        return project

    async def get_project_by_id(self, project_id: int) -> Optional[Project]:
        result = await self.db.execute(
            select(Project).where(Project.id == project_id)
        )
        return result.scalar_one_or_none()

    async def list_projects(self) -> List[Project]:
        """Return all projects, newest first."""
        result = await self.db.execute(
            select(Project).order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    async def count_projects(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Project))
        return result.scalar_one()
