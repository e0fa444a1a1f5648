from datetime import datetime
from pydantic import BaseModel, field_validator
import re

from bookstore.schemas.common import CamelModel


class UserRegister(BaseModel):
    username: str
    email: str
    password: str

    @field_validator("username")
    def validate_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        if len(v) > 100:
            raise ValueError("Username must be at most 100 characters")
        return v

    @field_validator("email")
    def validate_email(cls, v):
        # Basic regex validation
        if not re.match(r"^[^@]+@[^@]+\.[^@]+$", v.strip()):
            raise ValueError("Invalid email format")
        return v.lower().strip()

    @field_validator("password")
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain digit")
        if not re.search(r'[!@#$%^&*(),.?":{}|<>]', v):
            raise ValueError("Password must contain special character")
        return v


class UserLogin(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(CamelModel):
    id: str
    email: str
    username: str
    created_at: datetime | None = None


class UserSummary(CamelModel):
    """User as embedded in a transaction."""

    id: str
    email: str
    username: str
