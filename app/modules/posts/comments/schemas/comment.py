from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.modules.user_management.schemas.user import UserPublic

MAX_TEXT_LENGTH = 1000

def _clean_text(v: str) -> str:
    v = v.strip() if isinstance(v, str) else v
    if not v:
        raise ValueError("Comment text is required")
    if len(v) > MAX_TEXT_LENGTH:
        raise ValueError(f"Comment must not exceed {MAX_TEXT_LENGTH} characters")
    return v

class CommentBase(BaseModel):
    text: str

    clean_text = field_validator("text")(_clean_text)

class CommentCreate(CommentBase):
    post_id: str

class ReplyCreate(CommentBase):
    pass

class CommentUpdate(CommentBase):
    pass

class Comment(BaseModel):
    """Comment model returned to client"""
    id: str
    text: str
    post_id: str
    parent_id: Optional[str] = None
    author_id: str
    author: Optional[UserPublic] = None
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    is_liked: bool = False

class CommentWithReplies(Comment):
    """Top-level comment with its replies"""
    replies: List[Comment] = []
