"""
Counts the rows that depend on a park, so an operator can be warned before a delete.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, asdict
from typing import Dict

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models.models import (
    Tree,
    TreeMaintenance,
    Activity,
    InstructorAssignment,
    Incident,
    ParkAmenity,
    ParkImage,
    Asset,
    Volunteer,
    Instructor,
    ParkEvaluation,
    ParkDocument,
    User,
)


@dataclass(frozen=True)
class ParkDependencies:
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

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, int]:
        out = asdict(self)
        out["total"] = self.total
        return out


def _count_queries(park_id: int) -> dict:
    return {
        "trees": select(func.count(Tree.id)).where(Tree.park_id == park_id),
        "tree_maintenances": (
            select(func.count(TreeMaintenance.id))
            .join(Tree, Tree.id == TreeMaintenance.tree_id)
            .where(Tree.park_id == park_id)
        ),
        "activities": select(func.count(Activity.id)).where(Activity.park_id == park_id),
        "instructor_assignments": select(func.count(InstructorAssignment.id)).where(InstructorAssignment.park_id == park_id),
        "incidents": select(func.count(Incident.id)).where(Incident.park_id == park_id),
        "amenities": select(func.count(ParkAmenity.id)).where(ParkAmenity.park_id == park_id),
        "images": select(func.count(ParkImage.id)).where(ParkImage.park_id == park_id),
        "assets": select(func.count(Asset.id)).where(Asset.park_id == park_id),
        # weak references: these rows survive the delete with the column nulled
        "volunteers": select(func.count(Volunteer.id)).where(Volunteer.preferred_park_id == park_id),
        "instructors": select(func.count(Instructor.id)).where(Instructor.preferred_park_id == park_id),
        "users": select(func.count(User.id)).where(User.preferred_park_id == park_id),
        "evaluations": select(func.count(ParkEvaluation.id)).where(ParkEvaluation.park_id == park_id),
        "documents": select(func.count(ParkDocument.id)).where(ParkDocument.park_id == park_id),
    }


def count_park_dependencies(db: Session, park_id: int) -> ParkDependencies:
    """Return per-table dependent row counts for ``park_id``.

    A park that does not exist simply yields all zeros. Read-only.
    """
    if not isinstance(park_id, int) or isinstance(park_id, bool) or park_id <= 0:
        raise ValidationError("park_id", "must be a positive integer")
    queries = _count_queries(park_id)
    stmt = select(*[q.scalar_subquery().label(name) for name, q in queries.items()])
    row = db.execute(stmt).one()._mapping
    return ParkDependencies(**{name: int(row[name] or 0) for name in queries})
