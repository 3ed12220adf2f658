from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, field_validator

from app.modules.user_management.schemas.user import UserPublic

MAX_CONTENT_LENGTH = 5000

class PostPrivacy(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"

def _clean_content(v: str) -> str:
    v = v.strip() if isinstance(v, str) else v
    if not v:
        raise ValueError("Post content is required")
    if len(v) > MAX_CONTENT_LENGTH:
        raise ValueError(f"Post content must not exceed {MAX_CONTENT_LENGTH} characters")
    return v

def _check_privacy(v):
    if v is not None and v not in [p.value for p in PostPrivacy]:
        raise ValueError("Privacy must be either public or private")
    return v

class PostCreate(BaseModel):
    content: str
    privacy: PostPrivacy = PostPrivacy.PUBLIC
    image: Optional[str] = None

    clean_content = field_validator("content")(_clean_content)
    check_privacy = field_validator("privacy", mode="before")(_check_privacy)

class PostUpdate(BaseModel):
    content: str
    privacy: Optional[PostPrivacy] = None

    clean_content = field_validator("content")(_clean_content)
    check_privacy = field_validator("privacy", mode="before")(_check_privacy)

class Post(BaseModel):
    """Post model returned to client"""
    id: str
    content: str
    image: Optional[str] = None
    privacy: PostPrivacy
    author_id: str
    author: Optional[UserPublic] = None
    created_at: datetime
    updated_at: datetime

class PostWithLikes(Post):
    """Post with derived like count and the requester's like status"""
    like_count: int = 0
    is_liked: bool = False
