from sqlalchemy import delete, select

from app.stylehub.db.models import IdempotencyRecord


class IdempotencyRepository:
    def __init__(self, db):
        self.db = db

    def get_by_key(self, *, user_id, endpoint: str, method: str, idempotency_key: str) -> IdempotencyRecord | None:
        return (
            self.db.execute(
                select(IdempotencyRecord).where(
                    IdempotencyRecord.user_id == user_id,
                    IdempotencyRecord.endpoint == endpoint,
                    IdempotencyRecord.method == method,
                    IdempotencyRecord.idempotency_key == idempotency_key,
                )
            )
            .scalars()
            .first()
        )

    def save(self, record: IdempotencyRecord) -> IdempotencyRecord:
        # committed on its own so the key outlives a rolled back checkout
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def release(self, record: IdempotencyRecord) -> None:
        self.db.execute(delete(IdempotencyRecord).where(IdempotencyRecord.id == record.id))
        self.db.commit()
