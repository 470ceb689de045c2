"""
Blog-related request models
"""
from pydantic import BaseModel
from typing import Optional


class BlogPostRequest(BaseModel):
    """Request model for creating a blog post. Required columns are enforced by the store."""
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    image: Optional[str] = None
