import re
from typing import Optional
from email_validator import validate_email, EmailNotValidError
from pydantic import BaseModel, field_validator

from app.modules.user_management.schemas.user import User

def _normalize_email(email: str) -> str:
    """Validate the address and normalize it to lowercase."""
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValueError("Please provide a valid email address") from None

class RegisterRequest(BaseModel):
    email: str
    password: str

    normalize_email = field_validator("email")(_normalize_email)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        return v

class LoginRequest(BaseModel):
    email: str
    password: str

    normalize_email = field_validator("email")(_normalize_email)

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None

class RegisterResponse(BaseModel):
    user: User

class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: User
