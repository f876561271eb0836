import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from app.stylehub.db.models import AuditEvent
from app.stylehub.repos.audit import AuditRepository

logger = logging.getLogger(__name__)

ANONYMOUS_ACTOR = "anonymous"


def _storable(value):
    if isinstance(value, dict):
        return {key: _storable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_storable(item) for item in value]
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class AuditEventPayload:
    action: str
    entity_type: str
    entity_id: str | None
    actor: str = ANONYMOUS_ACTOR
    user_id: str | None = None
    actor_role: str | None = None
    trace_id: str | None = None
    before: dict | None = None
    after: dict | None = None
    metadata: dict = field(default_factory=dict)
    result: str = "success"

    def to_event(self) -> AuditEvent:
        return AuditEvent(
            user_id=self.user_id,
            trace_id=self.trace_id,
            actor=self.actor,
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            before_payload=_storable(self.before),
            after_payload=_storable(self.after),
            event_metadata=_storable({"actor_role": self.actor_role, **self.metadata}),
            result=self.result,
            created_at=datetime.utcnow(),
        )


class AuditService:
    """Best-effort audit trail.

    A failed write is logged and dropped so it never undoes the sale, payment
    or catalog change that triggered it.
    """

    def __init__(self, db):
        self.repo = AuditRepository(db)

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            self.repo.append(payload.to_event())
        except SQLAlchemyError:
            self.repo.db.rollback()
            logger.exception(
                "audit write failed action=%s entity=%s:%s trace_id=%s",
                payload.action,
                payload.entity_type,
                payload.entity_id,
                payload.trace_id,
            )


def audit_payload_for(
    user,
    *,
    trace_id: str | None,
    action: str,
    entity_type: str,
    entity_id,
    before: dict | None = None,
    after: dict | None = None,
    metadata: dict | None = None,
    result: str = "success",
) -> AuditEventPayload:
    """Payload attributed to ``user``; ``None`` records an anonymous actor (failed logins)."""
    return AuditEventPayload(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        actor=user.email if user is not None else ANONYMOUS_ACTOR,
        user_id=str(user.id) if user is not None else None,
        actor_role=user.role if user is not None else None,
        trace_id=trace_id,
        before=before,
        after=after,
        metadata=metadata or {},
        result=result,
    )
