"""
Append-only audit trail for destructive and profile-sync actions.

Entries are staged on the caller's session so they commit or roll back with
the change they describe. Each carries an HMAC-style SHA256 over its canonical
JSON form so tampering with a stored row can be detected later.
"""
import hashlib
import json
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy.orm import Session

from ..models.models import AuditLog
from ..config import settings


def _canonical(entity_type: str, entity_id: Any, action: str, actor_id: Optional[int],
               source: Optional[str], timestamp_utc: datetime, context: Optional[Dict]) -> str:
    data = {
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "action": action,
        "actor_id": str(actor_id) if actor_id else None,
        "source": source,
        "timestamp_utc": timestamp_utc.replace(tzinfo=None).isoformat(),
        "context": context,
    }
    return json.dumps({k: v for k, v in data.items() if v is not None}, sort_keys=True, default=str)


def _digest(canonical_json: str, secret: str) -> str:
    return hashlib.sha256(f"{canonical_json}:{secret}".encode()).hexdigest()


def record_audit(
    db: Session,
    entity_type: str,
    entity_id: Any,
    action: str,
    actor_id: Optional[int] = None,
    source: Optional[str] = None,
    context: Optional[Dict] = None,
    integrity_secret: Optional[str] = None,
) -> AuditLog:
    """
    Stage an audit entry on ``db`` and flush it. The caller commits.

    Args:
        entity_type: park|instructors|volunteers|user
        action: DELETE|LINK|CREATE|UPDATE
        source: api|script|system (defaults to system)
        context: free-form details, e.g. rows removed per category
        integrity_secret: hash key, defaults to JWT_SECRET; empty disables hashing
    """
    secret = settings.jwt_secret if integrity_secret is None else integrity_secret
    source = source or "system"
    timestamp_utc = datetime.utcnow().replace(tzinfo=None)

    integrity_hash = None
    if secret:
        integrity_hash = _digest(
            _canonical(entity_type, entity_id, action, actor_id, source, timestamp_utc, context), secret
        )

    entry = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        actor_id=actor_id,
        source=source,
        timestamp_utc=timestamp_utc,
        context=context,
        integrity_hash=integrity_hash,
    )
    db.add(entry)
    db.flush()
    return entry


def verify_audit_entry(entry: AuditLog, integrity_secret: Optional[str] = None) -> bool:
    """True when the stored hash still matches the row's contents."""
    secret = settings.jwt_secret if integrity_secret is None else integrity_secret
    if not secret or not entry.integrity_hash:
        return False
    expected = _digest(
        _canonical(entry.entity_type, entry.entity_id, entry.action, entry.actor_id,
                   entry.source, entry.timestamp_utc, entry.context),
        secret,
    )
    return expected == entry.integrity_hash


def get_audit_logs(
    db: Session,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[AuditLog]:
    query = db.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    # newest first
    return query.order_by(AuditLog.timestamp_utc.desc(), AuditLog.id.desc()).limit(limit).offset(offset).all()
