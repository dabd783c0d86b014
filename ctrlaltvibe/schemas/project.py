from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    long_description: Optional[str] = None
    project_url: str
    image_url: Optional[str] = None
    vibe_coding_tool: Optional[str] = None
    is_private: bool = False
    tags: List[str] = []

class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    long_description: Optional[str] = None
    project_url: Optional[str] = None
    image_url: Optional[str] = None
    vibe_coding_tool: Optional[str] = None
    is_private: Optional[bool] = None
    tags: Optional[List[str]] = None

class FeaturedUpdate(BaseModel):
    featured: bool

class ShareCreate(BaseModel):
    platform: str = Field(..., min_length=1)

class CommentCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Comment content cannot be empty")
        return v
