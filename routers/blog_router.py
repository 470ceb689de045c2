"""
Blog router: create, list and fetch blog posts
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from crud.blog_post import BlogPostRepository
from models.blog import BlogPostRequest
from utils.responses import message_response, error_response

logger = logging.getLogger(__name__)

blog_router = APIRouter(prefix="/api/blog", tags=["blog"])


@blog_router.post("")
async def create_post(request: BlogPostRequest, db: AsyncSession = Depends(get_db)):
    try:
        post = await BlogPostRepository(db).create_post(request.model_dump())
    except Exception as e:
        await db.rollback()
        logger.error(f"Blog creation failed: {e}")
        return error_response("Failed to create post", status=500)

    logger.info(f"Blog post created: {post.id}")
    return message_response("Post created successfully", status=201)


@blog_router.get("")
async def list_posts(db: AsyncSession = Depends(get_db)):
    """List blog posts, newest first."""
    try:
        posts = await BlogPostRepository(db).list_posts()
    except Exception as e:
        logger.error(f"Blog fetch failed: {e}")
        return error_response("Failed to fetch blog posts", status=500)
    return [post.to_dict() for post in posts]


@blog_router.get("/{post_id}")
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    post = await BlogPostRepository(db).get_post_by_id(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post.to_dict()
