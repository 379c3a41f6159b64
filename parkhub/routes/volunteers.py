from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import Annotated, Optional, List

from ..db import get_db
from ..errors import NotFoundError
from ..models.models import Volunteer, Park
from ..schemas.profiles import VolunteerCreate, VolunteerResponse
from ..auth.security import get_current_user, require_roles


router = APIRouter(prefix="/volunteers", tags=["volunteers"])


@router.get("", response_model=List[VolunteerResponse])
def list_volunteers(
    status: Optional[str] = None,
    park_id: Optional[int] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    query = db.query(Volunteer)
    if status:
        query = query.filter(Volunteer.status == status)
    if park_id is not None:
        query = query.filter(Volunteer.preferred_park_id == park_id)
    return query.order_by(Volunteer.id.desc()).all()


@router.get("/{volunteer_id}", response_model=VolunteerResponse)
def get_volunteer(volunteer_id: Annotated[int, Path(gt=0)], db: Session = Depends(get_db), _=Depends(get_current_user)):
    row = db.get(Volunteer, volunteer_id)
    if row is None:
        raise NotFoundError("Volunteer", volunteer_id)
    return row


@router.post("", response_model=VolunteerResponse, status_code=201)
def create_volunteer(payload: VolunteerCreate, db: Session = Depends(get_db), _=Depends(require_roles("manager", "director"))):
    if payload.preferred_park_id is not None and db.get(Park, payload.preferred_park_id) is None:
        raise NotFoundError("Park", payload.preferred_park_id)
    row = Volunteer(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
