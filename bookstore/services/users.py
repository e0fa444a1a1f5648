"""User registration and credential checks."""
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.exceptions import ConflictError, UnauthorizedError
from bookstore.core.logging import app_logger
from bookstore.core.security import get_password_hash, verify_password
from bookstore.models.user import User


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession, username: str, email: str, password: str
) -> User:
    """
    Create a new user.

    Raises:
        ConflictError: if the email or username is already taken
    """
    email = email.lower()
    result = await db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    existing = result.scalars().first()
    if existing is not None:
        if existing.email == email:
            raise ConflictError("Email already registered")
        raise ConflictError("Username already taken")

    new_user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration
        await db.rollback()
        raise ConflictError("Email or username already registered")
    await db.refresh(new_user)

    app_logger.info(f"Registered user {new_user.id}")
    return new_user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Return the user matching the credentials.

    Raises:
        UnauthorizedError: for an unknown email or a wrong password
    """
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        raise UnauthorizedError("Incorrect email or password")
    return user
