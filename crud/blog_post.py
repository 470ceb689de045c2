"""
BlogPostRepository for database operations on BlogPost model
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from database_models import BlogPost


class BlogPostRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_post(self, post_data: dict) -> BlogPost:
        post = BlogPost(**post_data)
        self.db.add(post)
        await self.db.flush()
        await self.db.refresh(post)
        return post

    async def get_post_by_id(self, post_id: int) -> Optional[BlogPost]:
        result = await self.db.execute(
            select(BlogPost).where(BlogPost.id == post_id)
        )
        return result.scalar_one_or_none()

    async def list_posts(self) -> List[BlogPost]:
        """Return all posts, newest first."""
        result = await self.db.execute(
            select(BlogPost).order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
        )
        return list(result.scalars().all())

    async def count_posts(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(BlogPost))
        return result.scalar_one()
