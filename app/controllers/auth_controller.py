"""
Auth controller — tenant registration & login.

Both routes are PUBLIC (no guard dependency).  Login answers every
credential failure with the same 401 body.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from app.services import auth_service

router = APIRouter(tags=["Auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new company and its administrator."""
    user = await auth_service.register(
        company_name=body.company_name,
        username=body.username,
        email=body.email,
        password=body.password,
        name=body.name,
        db=db,
    )
    return RegisterResponse(
        message="Registration successful. You can now log in.",
        user=UserOut.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate with company id + username + password → receive a JWT."""
    access_token = await auth_service.login(body.username, body.password, body.company_id, db)
    return TokenResponse(access_token=access_token)
