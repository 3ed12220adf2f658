from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import UnauthenticatedError
from app.core.security import decode_access_token
from app.core.storage import MediaStorage
from app.db.session import get_db
from app.modules.auth.schemas.auth import TokenPayload
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user

# OAuth2 token URL; auto_error is off so a missing token gets the 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    """
    Dependency for getting current authenticated user
    """
    if not token:
        raise UnauthenticatedError("Authentication required")

    payload = decode_access_token(token)
    try:
        token_data = TokenPayload(**payload) if payload else None
    except ValidationError:
        token_data = None
    if not token_data:
        raise UnauthenticatedError("Invalid or expired token")

    user = get_user(db, user_id=token_data.sub)
    if not user:
        raise UnauthenticatedError("User not found")

    return user

def get_media_storage(request: Request) -> MediaStorage:
    """Dependency returning the storage built at startup"""
    return request.app.state.media_storage
