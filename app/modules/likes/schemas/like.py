from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict

from app.modules.user_management.schemas.user import UserPublic

class TargetKind(str, Enum):
    POST = "Post"
    COMMENT = "Comment"

class LikeTarget(BaseModel):
    """What a like points at: a post or a comment, tagged by kind"""
    kind: TargetKind
    id: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def post(cls, post_id: str) -> "LikeTarget":
        return cls(kind=TargetKind.POST, id=post_id)

    @classmethod
    def comment(cls, comment_id: str) -> "LikeTarget":
        return cls(kind=TargetKind.COMMENT, id=comment_id)

class LikeToggleResult(BaseModel):
    is_liked: bool
    like_count: int

class Liker(BaseModel):
    user: UserPublic
    liked_at: datetime
