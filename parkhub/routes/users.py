from fastapi import APIRouter, Depends, Path
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Annotated, Optional, List

from ..db import get_db
from ..errors import NotFoundError, ConflictError
from ..models.models import User, Park
from ..schemas.users import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserUpdateResponse,
    ProfileSyncResponse,
    ProfileImageResponse,
)
from ..auth.security import get_current_user, require_roles, get_password_hash
from ..services.profile_sync import reconcile_profile
from ..services.profile_images import ProfileImageStore, get_profile_image_store
from ..logging import structlog


router = APIRouter(prefix="/users", tags=["users"])

UserId = Annotated[int, Path(gt=0)]


def _get_user_or_404(db: Session, user_id: int) -> User:
    u = db.get(User, user_id)
    if u is None:
        raise NotFoundError("User", user_id)
    return u


def _ensure_unique(db: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
    if username:
        q = db.query(User).filter(User.username == username)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ConflictError("username already in use", username=username)
    if email:
        q = db.query(User).filter(func.lower(User.email) == func.lower(email))
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ConflictError("email already in use", email=email)


def _ensure_park(db: Session, park_id: Optional[int]) -> None:
    if park_id is not None and db.get(Park, park_id) is None:
        raise NotFoundError("Park", park_id)


def _full_name(first: Optional[str], last: Optional[str]) -> Optional[str]:
    return " ".join(x for x in [first, last] if x) or None


def _sync_response(result) -> Optional[ProfileSyncResponse]:
    if result is None or result.action == "skipped":
        return None
    return ProfileSyncResponse(action=result.action, profile_type=result.profile_type, profile_id=result.profile_id)


@router.get("", response_model=List[UserResponse])
def list_users(
    q: Optional[str] = None,
    role: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    _=Depends(require_roles("manager", "director")),
):
    limit = min(max(1, limit), 200)
    page = max(1, page)
    query = db.query(User)
    if q:
        like = f"%{q}%"
        query = query.filter((User.username.ilike(like)) | (User.email.ilike(like)) | (User.full_name.ilike(like)))
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: UserId, db: Session = Depends(get_db), _=Depends(get_current_user)):
    return _get_user_or_404(db, user_id)


@router.post("", response_model=UserUpdateResponse, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    store: ProfileImageStore = Depends(get_profile_image_store),
    _=Depends(require_roles("manager", "director")),
):
    _ensure_unique(db, payload.username, payload.email)
    _ensure_park(db, payload.preferred_park_id)
    data = payload.model_dump(exclude={"password"})
    if not data.get("full_name"):
        data["full_name"] = _full_name(data.get("first_name"), data.get("last_name"))
    u = User(**data, password_hash=get_password_hash(payload.password))
    db.add(u)
    db.flush()
    sync = reconcile_profile(db, u)
    db.commit()
    db.refresh(u)
    if u.profile_image_url:
        store.put(u.id, u.profile_image_url)
    out = UserUpdateResponse.model_validate(u)
    out.profile_sync = _sync_response(sync)
    return out


@router.put("/{user_id}", response_model=UserUpdateResponse)
def update_user(
    payload: UserUpdate,
    user_id: UserId,
    db: Session = Depends(get_db),
    store: ProfileImageStore = Depends(get_profile_image_store),
    current: User = Depends(get_current_user),
):
    # Users may edit themselves; anyone else needs a manager role
    if current.id != user_id:
        require_roles("manager", "director")(current)
    u = _get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if "role" in changes and current.id == user_id and (current.role or "") not in ("admin", "super_admin", "manager", "director"):
        # role changes are an administrative action
        changes.pop("role")

    _ensure_unique(db, changes.get("username"), changes.get("email"), exclude_id=u.id)
    _ensure_park(db, changes.get("preferred_park_id"))

    password = changes.pop("password", None)
    if password:
        u.password_hash = get_password_hash(password)
    for k, v in changes.items():
        if k in ("username", "email", "role", "is_active") and v is None:
            continue
        setattr(u, k, v)
    if ("first_name" in changes or "last_name" in changes) and "full_name" not in changes:
        u.full_name = _full_name(u.first_name, u.last_name) or u.full_name

    db.flush()
    sync = reconcile_profile(db, u)
    db.commit()
    db.refresh(u)

    if "profile_image_url" in changes:
        if u.profile_image_url:
            store.put(u.id, u.profile_image_url)
        else:
            store.discard(u.id)

    structlog.get_logger().info("user_updated", user_id=u.id, fields=sorted(changes.keys()), profile_sync=sync.action)
    out = UserUpdateResponse.model_validate(u)
    out.profile_sync = _sync_response(sync)
    return out


@router.get("/{user_id}/profile-image", response_model=ProfileImageResponse)
def get_profile_image(
    user_id: UserId,
    db: Session = Depends(get_db),
    store: ProfileImageStore = Depends(get_profile_image_store),
    _=Depends(get_current_user),
):
    url = store.get(user_id)
    if url is not None:
        return ProfileImageResponse(user_id=user_id, profile_image_url=url, cached=True)
    u = _get_user_or_404(db, user_id)
    if u.profile_image_url:
        store.put(u.id, u.profile_image_url)
    return ProfileImageResponse(user_id=user_id, profile_image_url=u.profile_image_url, cached=False)
