"""
Keeps instructor/volunteer profile rows in step with the users they belong to.

Profiles predate accounts: many were created without a user and are linked
the first time a user with a matching email takes the instructor or
voluntario role. Nothing in the schema stops two profiles sharing a
(name, email) pair, so listings hide duplicates at read time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Type, Union

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ..models.models import User, Instructor, Volunteer
from .audit import record_audit

logger = structlog.get_logger(__name__)

Profile = Union[Instructor, Volunteer]

PROFILE_MODELS: Dict[str, Type[Profile]] = {
    "instructor": Instructor,
    "voluntario": Volunteer,
}


@dataclass(frozen=True)
class ReconcileResult:
    action: str  # updated|linked|created|skipped
    profile_type: Optional[str] = None
    profile_id: Optional[int] = None
    unlinked_duplicates: int = 0


def profile_model_for_role(role: Optional[str]) -> Optional[Type[Profile]]:
    return PROFILE_MODELS.get((role or "").strip().lower())


def display_name(user: User) -> str:
    name = (user.full_name or "").strip()
    if not name:
        name = " ".join(x for x in [(user.first_name or "").strip(), (user.last_name or "").strip()] if x)
    return name or user.username


def _sync_fields(profile: Profile, user: User) -> None:
    profile.full_name = display_name(user)
    profile.email = user.email
    # only overwrite contact details the user actually has
    if user.phone:
        profile.phone = user.phone
    if user.profile_image_url:
        profile.profile_image_url = user.profile_image_url
    if user.preferred_park_id is not None:
        profile.preferred_park_id = user.preferred_park_id


def reconcile_profile(db: Session, user: User, source: str = "api") -> ReconcileResult:
    """Ensure exactly one profile row of the user's role type points at the user.

    1. A profile already linked by user_id is refreshed from the user. Extra
       linked rows left behind by old imports are unlinked (lowest id is kept).
    2. Otherwise the unlinked profile with the same email (case-insensitive,
       lowest id) is linked and refreshed.
    3. Otherwise a new linked profile is created.

    Changes are flushed, not committed; the caller commits them together with
    the user update that triggered the sync.
    """
    model = profile_model_for_role(user.role)
    if model is None:
        return ReconcileResult(action="skipped")
    profile_type = model.__tablename__
    log = logger.bind(user_id=user.id, profile_type=profile_type)

    linked: List[Profile] = list(
        db.execute(select(model).where(model.user_id == user.id).order_by(model.id.asc())).scalars()
    )
    if linked:
        profile = linked[0]
        extra_ids = [p.id for p in linked[1:]]
        if extra_ids:
            db.execute(
                update(model).where(model.id.in_(extra_ids)).values(user_id=None),
                execution_options={"synchronize_session": "fetch"},
            )
            log.warning("profile_duplicates_unlinked", kept_id=profile.id, unlinked_ids=extra_ids)
        _sync_fields(profile, user)
        db.flush()
        log.info("profile_reconciled", action="updated", profile_id=profile.id)
        return ReconcileResult("updated", profile_type, profile.id, len(extra_ids))

    profile = db.execute(
        select(model)
        .where(func.lower(model.email) == func.lower((user.email or "").strip()), model.user_id.is_(None))
        .order_by(model.id.asc())
        .limit(1)
    ).scalar_one_or_none()
    if profile is not None:
        profile.user_id = user.id
        _sync_fields(profile, user)
        db.flush()
        record_audit(db, entity_type=profile_type, entity_id=profile.id, action="LINK",
                     actor_id=None, source=source, context={"user_id": user.id, "email": user.email})
        log.info("profile_reconciled", action="linked", profile_id=profile.id)
        return ReconcileResult("linked", profile_type, profile.id)

    profile = model(user_id=user.id, full_name=display_name(user), email=user.email, status="active")
    _sync_fields(profile, user)
    db.add(profile)
    db.flush()
    record_audit(db, entity_type=profile_type, entity_id=profile.id, action="CREATE",
                 actor_id=None, source=source, context={"user_id": user.id})
    log.info("profile_reconciled", action="created", profile_id=profile.id)
    return ReconcileResult("created", profile_type, profile.id)


def _dedup_key(model):
    return func.lower(model.full_name), func.lower(model.email)


def list_instructors_deduplicated(db: Session, status: Optional[str] = None) -> List[Instructor]:
    """One instructor per (lower(full_name), lower(email)): the most recently created.

    Stored duplicates are left alone; this only affects what is listed.
    Ties on created_at go to the higher id.
    """
    name_key, email_key = _dedup_key(Instructor)
    newest_first = (Instructor.created_at.desc().nulls_last(), Instructor.id.desc())

    if db.get_bind().dialect.name == "postgresql":
        keep = select(Instructor.id).distinct(name_key, email_key).order_by(name_key, email_key, *newest_first)
        if status:
            keep = keep.where(Instructor.status == status)
    else:
        rank = func.row_number().over(partition_by=(name_key, email_key), order_by=newest_first).label("rank")
        ranked = select(Instructor.id, rank)
        if status:
            ranked = ranked.where(Instructor.status == status)
        ranked = ranked.subquery()
        keep = select(ranked.c.id).where(ranked.c.rank == 1)

    stmt = select(Instructor).where(Instructor.id.in_(keep)).order_by(Instructor.id.desc())
    return list(db.execute(stmt).scalars())


def find_instructor_duplicate(db: Session, full_name: str, email: str) -> Optional[Instructor]:
    name_key, email_key = _dedup_key(Instructor)
    return db.execute(
        select(Instructor)
        .where(name_key == func.lower(full_name.strip()), email_key == func.lower(email.strip()))
        .order_by(Instructor.id.asc())
        .limit(1)
    ).scalar_one_or_none()
