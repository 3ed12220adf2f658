"""Authentication router for email/password accounts"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.responses import ApiResponse, success_response
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.auth.schemas.auth import (
    LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
)
from app.modules.auth.services.auth import authenticate_user, register_user
from app.modules.user_management.models.user import User
from app.modules.user_management.schemas.user import User as UserSchema

router = APIRouter()

@router.post(
    "/register",
    response_model=ApiResponse[RegisterResponse],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def register(
    *,
    db: Session = Depends(get_db),
    user_in: RegisterRequest,
) -> ApiResponse:
    """Register a new user"""
    user = register_user(db, user_in)
    return success_response(
        message="Registration successful. Please login to continue.",
        data=RegisterResponse(user=UserSchema.model_validate(user, from_attributes=True)),
    )

@router.post("/login", response_model=ApiResponse[LoginResponse], response_model_exclude_unset=True)
def login(
    *,
    db: Session = Depends(get_db),
    credentials: LoginRequest,
) -> ApiResponse:
    """Login user and return JWT token"""
    user, token = authenticate_user(db, credentials)
    return success_response(
        message="Login successful",
        data=LoginResponse(
            token=token,
            token_type="bearer",
            user=UserSchema.model_validate(user, from_attributes=True),
        ),
    )

@router.get("/me", response_model=ApiResponse[UserSchema], response_model_exclude_unset=True)
def read_current_user(current_user: User = Depends(get_current_user)) -> ApiResponse:
    """Return the authenticated user"""
    return success_response(data=UserSchema.model_validate(current_user, from_attributes=True))
