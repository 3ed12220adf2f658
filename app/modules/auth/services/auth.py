import logging
import uuid
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, UnauthenticatedError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.modules.auth.schemas.auth import LoginRequest, RegisterRequest
from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user_by_email

logger = logging.getLogger("app")

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

def register_user(db: Session, user_in: RegisterRequest) -> User:
    """Create a user account; the email must not be registered yet"""
    if get_user_by_email(db, user_in.email):
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        id=str(uuid.uuid4()),
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user

def authenticate_user(db: Session, credentials: LoginRequest) -> Tuple[User, str]:
    """Check credentials and issue an access token"""
    user = get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise UnauthenticatedError(INVALID_CREDENTIALS_MESSAGE)

    token = create_access_token(user.id, email=user.email)
    return user, token
