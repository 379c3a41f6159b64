from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Integer,
    Float,
    Numeric,
    JSON,
    UniqueConstraint,
    Text,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


class Park(Base):
    __tablename__ = "parks"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    park_type: Mapped[Optional[str]] = mapped_column(String(50))  # urbano|metropolitano|vecinal|lineal|bosque
    description: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    area: Mapped[Optional[float]] = mapped_column(Numeric(12, 2))  # m2
    opening_hours: Mapped[Optional[str]] = mapped_column(String(255))
    contact_email: Mapped[Optional[str]] = mapped_column(String(255))
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="user")  # admin|instructor|voluntario|ciudadano|...
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    preferred_park_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("parks.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)


class Instructor(Base):
    __tablename__ = "instructors"

    id: Mapped[int] = int_pk()
    # Legacy rows exist without a user; linked later by the profile sync
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    specialties: Mapped[Optional[list]] = mapped_column(JSON)
    experience_years: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")  # active|inactive|pending
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    preferred_park_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("parks.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])


class Volunteer(Base):
    __tablename__ = "volunteers"

    id: Mapped[int] = int_pk()
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))
    preferred_park_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("parks.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])


# ----- Rows owned by a park -----
class Tree(Base):
    __tablename__ = "trees"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    code: Mapped[Optional[str]] = mapped_column(String(50))
    species: Mapped[Optional[str]] = mapped_column(String(255))
    health_status: Mapped[Optional[str]] = mapped_column(String(50))  # bueno|regular|malo|critico
    planted_at: Mapped[Optional[date]] = mapped_column(Date)


class TreeMaintenance(Base):
    __tablename__ = "tree_maintenances"

    id: Mapped[int] = int_pk()
    tree_id: Mapped[int] = mapped_column(Integer, ForeignKey("trees.id"), nullable=False, index=True)
    maintenance_type: Mapped[str] = mapped_column(String(50), nullable=False)  # poda|riego|fertilizacion|tratamiento
    performed_at: Mapped[Optional[date]] = mapped_column(Date)
    notes: Mapped[Optional[str]] = mapped_column(Text)


class ParkEvaluation(Base):
    __tablename__ = "park_evaluations"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    evaluator_name: Mapped[Optional[str]] = mapped_column(String(255))
    overall_rating: Mapped[Optional[int]] = mapped_column(Integer)  # 1..5
    comments: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ParkDocument(Base):
    __tablename__ = "park_documents"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Amenity(Base):
    __tablename__ = "amenities"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(100))


class ParkAmenity(Base):
    __tablename__ = "park_amenities"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    amenity_id: Mapped[int] = mapped_column(Integer, ForeignKey("amenities.id"), nullable=False)

    __table_args__ = (UniqueConstraint("park_id", "amenity_id", name="uq_park_amenity"),)


class ParkImage(Base):
    __tablename__ = "park_images"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(255))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    instructor_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("instructors.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class InstructorAssignment(Base):
    __tablename__ = "instructor_assignments"

    id: Mapped[int] = int_pk()
    instructor_id: Mapped[int] = mapped_column(Integer, ForeignKey("instructors.id"), nullable=False, index=True)
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    activity_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("activities.id"))
    start_date: Mapped[Optional[date]] = mapped_column(Date)


class Incident(Base):
    __tablename__ = "incidents"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|in_progress|resolved
    severity: Mapped[Optional[str]] = mapped_column(String(20))  # low|medium|high|critical
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[int] = int_pk()
    park_id: Mapped[int] = mapped_column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[Optional[str]] = mapped_column(String(50), default="active")
    serial_number: Mapped[Optional[str]] = mapped_column(String(100))


class AuditLog(Base):
    """Append-only audit log for destructive and sync actions"""
    __tablename__ = "audit_logs"

    id: Mapped[int] = int_pk()
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # park|user|instructor|volunteer
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)  # DELETE|LINK|CREATE|UPDATE
    actor_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    source: Mapped[Optional[str]] = mapped_column(String(50))  # api|script|system
    timestamp_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    context: Mapped[Optional[dict]] = mapped_column(JSON)  # e.g. per-table rows removed
    integrity_hash: Mapped[Optional[str]] = mapped_column(String(64))  # SHA256 hash for integrity verification

    __table_args__ = (
        Index('idx_audit_entity', 'entity_type', 'entity_id'),
    )
