from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from ..models.enums import Tier

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    tier: Tier = Tier.FREE


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    username: Optional[str]
    tier: str
    role: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary
    message: Optional[str] = None
