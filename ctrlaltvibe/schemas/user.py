from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Optional

from ctrlaltvibe.core.constants import RoleEnum
from ctrlaltvibe.schemas.token import Token

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr

class UserCreate(UserBase):
    password: str = Field(..., min_length=6)

class UserLogin(BaseModel):
    username: str = Field(..., description="Username or email")
    password: str

class GoogleLogin(BaseModel):
    id_token: str

class User(UserBase):
    id: int
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class RoleUpdate(BaseModel):
    role: RoleEnum

class AuthResult(BaseModel):
    user: User
    token: Token
