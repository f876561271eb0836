from app.stylehub.db.models import AuditEvent


class AuditRepository:
    """Append-only access to ``audit_events``."""

    def __init__(self, db):
        self.db = db

    def append(self, event: AuditEvent) -> AuditEvent:
        # committed on its own, after the business write it describes
        self.db.add(event)
        self.db.commit()
        return event
