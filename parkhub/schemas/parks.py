from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Dict, List
from pydantic import BaseModel, Field, field_validator


class ParkBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    park_type: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    area: Optional[Decimal] = Field(default=None, ge=0)
    opening_hours: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @field_validator('park_type', 'description', 'address', 'postal_code', 'opening_hours', 'contact_email', 'contact_phone', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ParkCreate(ParkBase):
    pass


class ParkUpdate(ParkBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ParkResponse(ParkBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ParkDependenciesResponse(BaseModel):
    park_id: int
    trees: int = 0
    tree_maintenances: int = 0
    activities: int = 0
    instructor_assignments: int = 0
    incidents: int = 0
    amenities: int = 0
    images: int = 0
    assets: int = 0
    volunteers: int = 0
    instructors: int = 0
    users: int = 0
    evaluations: int = 0
    documents: int = 0
    total: int = 0


class ParkDeleteResponse(BaseModel):
    status: str = "ok"
    park_id: int
    rows_deleted: Dict[str, int]
    references_cleared: Dict[str, int]
    categories_processed: List[str]


class AuditEntryResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: str
    action: str
    actor_id: Optional[int] = None
    source: Optional[str] = None
    timestamp_utc: datetime
    context: Optional[Dict[str, Any]] = None
    integrity_ok: bool = False

    class Config:
        from_attributes = True
