"""
Admin router: user listing and site statistics (admin role only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_admin
from database import get_db
from crud.user import UserRepository
from crud.project import ProjectRepository
from crud.blog_post import BlogPostRepository
from models.user import UserSummary

admin_router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/users")
async def list_users(db: AsyncSession = Depends(get_db)):
    users = await UserRepository(db).list_users()
    return {
        "users": [
            UserSummary.model_validate(user).model_dump(mode="json", by_alias=True)
            for user in users
        ]
    }


@admin_router.get("/stats")
async def get_stats(db: AsyncSession = Depends(get_db)):
    return {
        "users": await UserRepository(db).count_users(),
        "projects": await ProjectRepository(db).count_projects(),
        "blogPosts": await BlogPostRepository(db).count_posts(),
    }
