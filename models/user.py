from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """User as listed to admins; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    fullname: Optional[str] = None
    email: str
    role: str = "user"
    created_at: datetime = Field(serialization_alias="createdAt")
