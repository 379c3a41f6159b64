from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import Annotated, Optional, List

from ..db import get_db
from ..errors import NotFoundError, ConflictError
from ..models.models import Instructor, Park
from ..schemas.profiles import InstructorCreate, InstructorResponse, PublicInstructorResponse
from ..auth.security import get_current_user, require_roles
from ..services.profile_sync import list_instructors_deduplicated, find_instructor_duplicate


router = APIRouter(prefix="/instructors", tags=["instructors"])
public_router = APIRouter(prefix="/public", tags=["public"])

InstructorId = Annotated[int, Path(gt=0)]


@router.get("", response_model=List[InstructorResponse])
def list_instructors(status: Optional[str] = None, db: Session = Depends(get_db), _=Depends(get_current_user)):
    return list_instructors_deduplicated(db, status=status)


@router.get("/all", response_model=List[InstructorResponse])
def list_all_instructors(db: Session = Depends(get_db), _=Depends(require_roles("manager", "director"))):
    # Raw rows, duplicates included (data cleanup view)
    return db.query(Instructor).order_by(Instructor.id.desc()).all()


@router.get("/{instructor_id}", response_model=InstructorResponse)
def get_instructor(instructor_id: InstructorId, db: Session = Depends(get_db), _=Depends(get_current_user)):
    row = db.get(Instructor, instructor_id)
    if row is None:
        raise NotFoundError("Instructor", instructor_id)
    return row


@router.post("", response_model=InstructorResponse, status_code=201)
def create_instructor(payload: InstructorCreate, db: Session = Depends(get_db), _=Depends(require_roles("manager", "director"))):
    existing = find_instructor_duplicate(db, payload.full_name, payload.email)
    if existing is not None:
        raise ConflictError("instructor with this name and email already exists", instructor_id=existing.id)
    if payload.preferred_park_id is not None and db.get(Park, payload.preferred_park_id) is None:
        raise NotFoundError("Park", payload.preferred_park_id)
    row = Instructor(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@public_router.get("/instructors", response_model=List[PublicInstructorResponse])
def list_public_instructors(db: Session = Depends(get_db)):
    return list_instructors_deduplicated(db, status="active")
