from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, EmailStr, Field, field_validator


Role = Literal[
    'admin', 'super_admin', 'moderator', 'operator', 'director', 'manager', 'supervisor',
    'ciudadano', 'voluntario', 'instructor', 'user', 'guardaparques', 'guardia', 'concesionario',
]


class _UserFields(BaseModel):
    @field_validator('full_name', 'first_name', 'last_name', 'phone', 'profile_image_url', mode='before', check_fields=False)
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class UserCreate(_UserFields):
    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role = 'user'
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    preferred_park_id: Optional[int] = None


class UserUpdate(_UserFields):
    username: Optional[str] = Field(default=None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    role: Optional[Role] = None
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    preferred_park_id: Optional[int] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    preferred_park_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileSyncResponse(BaseModel):
    action: str  # updated|linked|created|skipped
    profile_type: Optional[str] = None
    profile_id: Optional[int] = None


class UserUpdateResponse(UserResponse):
    profile_sync: Optional[ProfileSyncResponse] = None


class ProfileImageResponse(BaseModel):
    user_id: int
    profile_image_url: Optional[str] = None
    cached: bool = False


class LoginRequest(BaseModel):
    identifier: str  # username or email
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
