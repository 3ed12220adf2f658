from datetime import datetime
from pydantic import BaseModel, ConfigDict

class UserPublic(BaseModel):
    """Author/liker display fields embedded in posts, comments and likes"""
    id: str
    email: str

    model_config = ConfigDict(from_attributes=True)

class User(UserPublic):
    """User model returned to client"""
    created_at: datetime
