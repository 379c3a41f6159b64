"""
Cascade deletion of a park.

Deletes every row that exists only because of the park, clears weak
(preferred-park) references, then deletes the park itself. All statements run
in one transaction with the park row locked; any database error rolls the
whole thing back.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFoundError, TransactionFailure, ValidationError
from ..models.models import (
    Park,
    User,
    Tree,
    TreeMaintenance,
    ParkEvaluation,
    ParkDocument,
    ParkAmenity,
    ParkImage,
    InstructorAssignment,
    Activity,
    Incident,
    Asset,
    Volunteer,
    Instructor,
)
from .audit import record_audit

logger = structlog.get_logger(__name__)

DELETE = "delete"
NULLIFY = "nullify"


@dataclass(frozen=True)
class CascadeStep:
    category: str
    action: str  # delete|nullify
    build: Callable[[int], object]
    synchronize_session: Union[str, bool] = False


# Most-dependent first so no statement trips a foreign key.
CASCADE_STEPS: Tuple[CascadeStep, ...] = (
    CascadeStep("tree_maintenances", DELETE, lambda pid: delete(TreeMaintenance).where(
        TreeMaintenance.tree_id.in_(select(Tree.id).where(Tree.park_id == pid)))),
    CascadeStep("trees", DELETE, lambda pid: delete(Tree).where(Tree.park_id == pid)),
    CascadeStep("evaluations", DELETE, lambda pid: delete(ParkEvaluation).where(ParkEvaluation.park_id == pid)),
    CascadeStep("documents", DELETE, lambda pid: delete(ParkDocument).where(ParkDocument.park_id == pid)),
    CascadeStep("amenities", DELETE, lambda pid: delete(ParkAmenity).where(ParkAmenity.park_id == pid)),
    CascadeStep("images", DELETE, lambda pid: delete(ParkImage).where(ParkImage.park_id == pid)),
    CascadeStep("instructor_assignments", DELETE, lambda pid: delete(InstructorAssignment).where(
        InstructorAssignment.park_id == pid)),
    CascadeStep("activities", DELETE, lambda pid: delete(Activity).where(Activity.park_id == pid)),
    CascadeStep("incidents", DELETE, lambda pid: delete(Incident).where(Incident.park_id == pid)),
    CascadeStep("assets", DELETE, lambda pid: delete(Asset).where(Asset.park_id == pid)),
    CascadeStep("volunteers", NULLIFY, lambda pid: update(Volunteer).where(
        Volunteer.preferred_park_id == pid).values(preferred_park_id=None)),
    CascadeStep("instructors", NULLIFY, lambda pid: update(Instructor).where(
        Instructor.preferred_park_id == pid).values(preferred_park_id=None)),
    CascadeStep("users", NULLIFY, lambda pid: update(User).where(
        User.preferred_park_id == pid).values(preferred_park_id=None)),
    # evaluate: a Park instance the caller holds is marked deleted, not left stale
    CascadeStep("park", DELETE, lambda pid: delete(Park).where(Park.id == pid), synchronize_session="evaluate"),
)


@dataclass
class CascadeDeletionResult:
    """Outcome of a committed cascade delete.

    Attributes:
        park_id: The deleted park.
        rows_deleted: Rows removed per category (the park row itself under "park").
        references_cleared: Rows whose preferred_park_id was set to NULL, per category.
        categories_processed: Categories in the order they were executed.
    """

    park_id: int
    park_name: Optional[str] = None
    rows_deleted: Dict[str, int] = field(default_factory=dict)
    references_cleared: Dict[str, int] = field(default_factory=dict)
    categories_processed: List[str] = field(default_factory=list)

    @property
    def total_deleted(self) -> int:
        return sum(v for k, v in self.rows_deleted.items() if k != "park")


def delete_park_cascade(
    db: Session,
    park_id: int,
    actor_id: Optional[int] = None,
    source: str = "api",
) -> CascadeDeletionResult:
    """Atomically delete a park and everything that exclusively depends on it.

    Raises:
        ValidationError: park_id is not a positive integer.
        NotFoundError: no park with that id (nothing is changed).
        TransactionFailure: a statement failed; the transaction was rolled back.
    """
    if not isinstance(park_id, int) or isinstance(park_id, bool) or park_id <= 0:
        raise ValidationError("park_id", "must be a positive integer")

    log = logger.bind(park_id=park_id)
    log.info("park_cascade_started")
    try:
        # Row lock held until commit/rollback; a concurrent delete waits here
        # and then finds nothing.
        park = db.execute(
            select(Park).where(Park.id == park_id).with_for_update()
        ).scalar_one_or_none()
        if park is None:
            db.rollback()
            raise NotFoundError("Park", park_id)

        result = CascadeDeletionResult(park_id=park_id, park_name=park.name)
        for step in CASCADE_STEPS:
            res = db.execute(step.build(park_id), execution_options={"synchronize_session": step.synchronize_session})
            affected = max(res.rowcount or 0, 0)
            if step.action == NULLIFY:
                result.references_cleared[step.category] = affected
            else:
                result.rows_deleted[step.category] = affected
            result.categories_processed.append(step.category)

        record_audit(
            db,
            entity_type="park",
            entity_id=park_id,
            action="DELETE",
            actor_id=actor_id,
            source=source,
            context={
                "name": result.park_name,
                "rows_deleted": result.rows_deleted,
                "references_cleared": result.references_cleared,
            },
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error("park_cascade_failed", error=str(e))
        raise TransactionFailure("Park deletion", park_id=park_id) from e

    log.info(
        "park_cascade_completed",
        rows_deleted=result.rows_deleted,
        references_cleared=result.references_cleared,
    )
    return result
