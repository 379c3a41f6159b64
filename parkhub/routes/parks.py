from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import Annotated, Optional, List

from ..db import get_db
from ..errors import NotFoundError
from ..models.models import Park, User
from ..schemas.parks import (
    ParkCreate,
    ParkUpdate,
    ParkResponse,
    ParkDependenciesResponse,
    ParkDeleteResponse,
    AuditEntryResponse,
)
from ..auth.security import get_current_user, require_roles
from ..services.park_dependencies import count_park_dependencies
from ..services.park_cascade import delete_park_cascade
from ..services.audit import get_audit_logs, verify_audit_entry


router = APIRouter(prefix="/parks", tags=["parks"])

ParkId = Annotated[int, Path(gt=0, description="Park id")]


def _get_park_or_404(db: Session, park_id: int) -> Park:
    park = db.get(Park, park_id)
    if park is None:
        raise NotFoundError("Park", park_id)
    return park


@router.get("", response_model=List[ParkResponse])
def list_parks(
    q: Optional[str] = None,
    park_type: Optional[str] = None,
    postal_code: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    query = db.query(Park)
    if q:
        like = f"%{q}%"
        query = query.filter((Park.name.ilike(like)) | (Park.address.ilike(like)))
    if park_type:
        query = query.filter(Park.park_type == park_type)
    if postal_code:
        query = query.filter(Park.postal_code == postal_code)
    return query.order_by(Park.name.asc(), Park.id.asc()).all()


@router.get("/{park_id}", response_model=ParkResponse)
def get_park(park_id: ParkId, db: Session = Depends(get_db), _=Depends(get_current_user)):
    return _get_park_or_404(db, park_id)


@router.post("", response_model=ParkResponse, status_code=201)
def create_park(payload: ParkCreate, db: Session = Depends(get_db), _=Depends(require_roles("manager", "director"))):
    park = Park(**payload.model_dump())
    db.add(park)
    db.commit()
    db.refresh(park)
    return park


@router.put("/{park_id}", response_model=ParkResponse)
def update_park(
    payload: ParkUpdate,
    park_id: ParkId,
    db: Session = Depends(get_db),
    _=Depends(require_roles("manager", "director")),
):
    park = _get_park_or_404(db, park_id)
    for k, v in payload.model_dump(exclude_unset=True).items():
        if k == "name" and v is None:
            continue
        setattr(park, k, v)
    db.commit()
    db.refresh(park)
    return park


@router.get("/{park_id}/dependencies", response_model=ParkDependenciesResponse)
def get_park_dependencies(park_id: ParkId, db: Session = Depends(get_db), _=Depends(get_current_user)):
    # Shown in the delete confirmation dialog; unknown ids report zeros
    deps = count_park_dependencies(db, park_id)
    return ParkDependenciesResponse(park_id=park_id, **deps.to_dict())


@router.delete("/{park_id}", response_model=ParkDeleteResponse)
def delete_park(
    park_id: ParkId,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("director")),
):
    result = delete_park_cascade(db, park_id, actor_id=user.id, source="api")
    return ParkDeleteResponse(
        park_id=result.park_id,
        rows_deleted=result.rows_deleted,
        references_cleared=result.references_cleared,
        categories_processed=result.categories_processed,
    )


@router.get("/{park_id}/audit", response_model=List[AuditEntryResponse])
def get_park_audit(
    park_id: ParkId,
    limit: int = 50,
    db: Session = Depends(get_db),
    _=Depends(require_roles("manager", "director")),
):
    # Still answers after the park is gone; the DELETE entry outlives it
    entries = get_audit_logs(db, entity_type="park", entity_id=park_id, limit=min(max(1, limit), 200))
    out = []
    for e in entries:
        item = AuditEntryResponse.model_validate(e)
        item.integrity_ok = verify_audit_entry(e)
        out.append(item)
    return out
