from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator


class ProfileBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    status: str = "active"
    profile_image_url: Optional[str] = None
    preferred_park_id: Optional[int] = None

    @field_validator('full_name', mode='before')
    @classmethod
    def strip_name(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator('phone', 'profile_image_url', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class InstructorCreate(ProfileBase):
    specialties: Optional[List[str]] = None
    experience_years: Optional[int] = Field(default=None, ge=0)


class InstructorResponse(InstructorCreate):
    id: int
    email: str
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicInstructorResponse(BaseModel):
    id: int
    full_name: str
    specialties: Optional[List[str]] = None
    experience_years: Optional[int] = None
    profile_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class VolunteerCreate(ProfileBase):
    pass


class VolunteerResponse(VolunteerCreate):
    id: int
    email: str
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
