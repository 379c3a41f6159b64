"""Tests for cascading park deletion."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect, text

from parkhub.errors import NotFoundError, TransactionFailure, ValidationError
from parkhub.models.models import (
    Activity,
    Amenity,
    Asset,
    AuditLog,
    Incident,
    Instructor,
    InstructorAssignment,
    Park,
    ParkAmenity,
    ParkDocument,
    ParkEvaluation,
    ParkImage,
    Tree,
    TreeMaintenance,
    User,
    Volunteer,
)
from parkhub.services import park_cascade
from parkhub.services.park_cascade import CASCADE_STEPS, DELETE, CascadeStep, delete_park_cascade
from parkhub.services.park_dependencies import count_park_dependencies

OWNED = (Tree, TreeMaintenance, Activity, InstructorAssignment, Incident, ParkAmenity, ParkImage, Asset,
         ParkEvaluation, ParkDocument)


def _snapshot(db) -> dict:
    db.expire_all()
    snap = {m.__tablename__: db.query(m).count() for m in OWNED + (Park, Volunteer, Instructor, User, AuditLog)}
    snap["volunteer_prefs"] = sorted((v.id, v.preferred_park_id) for v in db.query(Volunteer))
    snap["instructor_prefs"] = sorted((i.id, i.preferred_park_id) for i in db.query(Instructor))
    return snap


class TestDeleteParkCascade:
    def test_documented_scenario(self, db, make_park) -> None:
        park = make_park(id=5, name="Parque Agua Azul")
        db.add_all([Tree(park_id=5, code=f"T{i}") for i in range(3)])
        db.add_all([Activity(park_id=5, title="Yoga"), Activity(park_id=5, title="Tai chi")])
        db.add(Incident(park_id=5, title="Fuga de agua"))
        db.add(Volunteer(id=9, full_name="Rosa", email="rosa@example.org", preferred_park_id=5))
        db.commit()

        result = delete_park_cascade(db, park.id)

        db.expire_all()
        assert db.query(Tree).filter(Tree.park_id == 5).count() == 0
        assert db.query(Activity).filter(Activity.park_id == 5).count() == 0
        assert db.query(Incident).filter(Incident.park_id == 5).count() == 0
        assert db.get(Volunteer, 9).preferred_park_id is None
        assert db.get(Park, 5) is None
        assert result.rows_deleted["trees"] == 3
        assert result.rows_deleted["activities"] == 2
        assert result.rows_deleted["park"] == 1
        assert result.references_cleared["volunteers"] == 1

    def test_removes_every_owned_row(self, db, populated_park) -> None:
        park_id = populated_park().id

        delete_park_cascade(db, park_id)

        db.expire_all()
        for model in OWNED:
            assert db.query(model).count() == 0, model.__tablename__
        assert count_park_dependencies(db, park_id).total == 0

    def test_weak_references_survive_nulled(self, db, populated_park, make_user) -> None:
        park = populated_park()
        user = make_user("vecina", "vecina@example.org", preferred_park_id=park.id)
        assert count_park_dependencies(db, park.id).users == 1

        delete_park_cascade(db, park.id)

        db.expire_all()
        assert db.query(Volunteer).count() == 1
        assert db.query(Instructor).count() == 1
        assert db.query(Volunteer).one().preferred_park_id is None
        assert db.query(Instructor).one().preferred_park_id is None
        assert db.get(User, user.id).preferred_park_id is None

    def test_leaves_other_parks_and_amenity_catalog_alone(self, db, populated_park) -> None:
        doomed = populated_park("Parque Revolución")
        kept = populated_park("Parque Alcalde")
        before = count_park_dependencies(db, kept.id)

        delete_park_cascade(db, doomed.id)

        assert count_park_dependencies(db, kept.id) == before
        assert db.get(Park, kept.id) is not None
        assert db.query(Amenity).count() == 1

    def test_result_reports_categories_in_execution_order(self, db, populated_park) -> None:
        park = populated_park()

        result = delete_park_cascade(db, park.id)

        assert result.categories_processed == [s.category for s in CASCADE_STEPS]
        assert result.categories_processed[-1] == "park"
        assert result.park_name == "Parque Agua Azul"
        assert result.total_deleted == 15

    def test_writes_audit_entry(self, db, populated_park, director) -> None:
        park_id = populated_park().id

        delete_park_cascade(db, park_id, actor_id=director.id, source="test")

        entry = db.query(AuditLog).filter(AuditLog.entity_type == "park").one()
        assert entry.entity_id == str(park_id)
        assert entry.action == "DELETE"
        assert entry.actor_id == director.id
        assert entry.source == "test"
        assert entry.context["rows_deleted"]["trees"] == 3
        assert entry.integrity_hash

    def test_caller_instance_is_marked_deleted(self, db, populated_park) -> None:
        park = populated_park()
        park_id = park.id

        delete_park_cascade(db, park_id)

        assert park.id == park_id
        assert park.name == "Parque Agua Azul"
        assert inspect(park).was_deleted
        assert park not in db
        assert db.get(Park, park_id) is None

    def test_unknown_park_changes_nothing(self, db, populated_park) -> None:
        populated_park()
        before = _snapshot(db)

        with pytest.raises(NotFoundError) as exc_info:
            delete_park_cascade(db, 4040)

        assert exc_info.value.resource_id == 4040
        assert _snapshot(db) == before

    def test_second_delete_reports_not_found(self, db, populated_park) -> None:
        park_id = populated_park().id
        delete_park_cascade(db, park_id)

        with pytest.raises(NotFoundError):
            delete_park_cascade(db, park_id)

    def test_failure_mid_cascade_rolls_back_everything(self, db, populated_park, monkeypatch) -> None:
        park = populated_park()
        before = _snapshot(db)
        broken = list(CASCADE_STEPS)
        broken[2] = CascadeStep(
            "evaluations",
            DELETE,
            lambda pid: text("DELETE FROM no_such_table WHERE park_id = :pid").bindparams(pid=pid),
        )
        monkeypatch.setattr(park_cascade, "CASCADE_STEPS", tuple(broken))

        with pytest.raises(TransactionFailure) as exc_info:
            delete_park_cascade(db, park.id)

        assert exc_info.value.context == {"park_id": park.id}
        assert exc_info.value.status_code == 500
        after = _snapshot(db)
        assert after == before
        assert after["trees"] == 3
        assert after["tree_maintenances"] == 2

    @pytest.mark.parametrize("bad_id", [0, -1, False, "5"])
    def test_rejects_invalid_ids(self, db, bad_id) -> None:
        with pytest.raises(ValidationError):
            delete_park_cascade(db, bad_id)
