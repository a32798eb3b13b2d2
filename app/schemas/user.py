from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str
