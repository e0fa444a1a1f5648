from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.dependencies import get_current_user
from bookstore.core.security import create_access_token
from bookstore.database import get_db
from bookstore.models.user import User
from bookstore.schemas.auth import Token, UserLogin, UserRegister, UserResponse
from bookstore.schemas.common import ApiResponse
from bookstore.services import users

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Register a new user. Email and username must both be unused."""
    new_user = await users.register_user(
        db,
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
    )
    return ApiResponse(
        message="User registered successfully",
        data=UserResponse.model_validate(new_user),
    )


@router.post("/login", response_model=ApiResponse[Token])
async def login(user_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Login endpoint. Accepts JSON with email and password, returns JWT token."""
    user = await users.authenticate_user(db, user_data.email, user_data.password)
    access_token = create_access_token(user.id, {"email": user.email})
    return ApiResponse(
        message="Login successfully",
        data=Token(access_token=access_token),
    )


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(current_user: User = Depends(get_current_user)):
    return ApiResponse(
        message="Get me successfully",
        data=UserResponse.model_validate(current_user),
    )
