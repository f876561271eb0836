import hashlib
import json
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.core.metrics import metrics
from app.stylehub.db.models import IdempotencyRecord
from app.stylehub.repos.idempotency import IdempotencyRepository

IDEMPOTENCY_HEADER = "Idempotency-Key"

STATE_IN_PROGRESS = "in_progress"
STATE_SUCCEEDED = "succeeded"
STATE_FAILED = "failed"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict


class IdempotencyContext:
    """Handle on the stored attempt for one keyed checkout request."""

    def __init__(self, record: IdempotencyRecord, repo: IdempotencyRepository):
        self._record = record
        self._repo = repo

    def _finish(self, state: str, status_code: int, response_body: dict) -> None:
        self._record.state = state
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.updated_at = datetime.utcnow()
        self._repo.save(self._record)

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._finish(STATE_SUCCEEDED, status_code, response_body)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        # server side failures and lock timeouts wrote nothing, the cashier may retry with the same key
        if status_code >= 500 or response_body.get("code") == ErrorCatalog.LOCK_TIMEOUT.code:
            self._repo.release(self._record)
            return
        self._finish(STATE_FAILED, status_code, response_body)


class IdempotencyService:
    """Stores the first response for an ``Idempotency-Key`` and replays it.

    Keys are scoped per cashier, endpoint and method. A key reused with a
    different cart, or while the first submission is still running, is a
    conflict. Rejections (4xx) are replayed like successes.
    """

    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        canonical = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def start(
        self,
        *,
        user_id,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        scope = {
            "user_id": user_id,
            "endpoint": endpoint,
            "method": method,
            "idempotency_key": idempotency_key,
        }
        existing = self.repo.get_by_key(**scope)
        if existing is not None:
            return None, self._replay(existing, request_hash)

        record = IdempotencyRecord(**scope, request_hash=request_hash, state=STATE_IN_PROGRESS)
        try:
            record = self.repo.save(record)
        except IntegrityError:
            # a concurrent request with the same key won the insert
            self.repo.db.rollback()
            winner = self.repo.get_by_key(**scope)
            if winner is None:
                raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
            return None, self._replay(winner, request_hash)
        return IdempotencyContext(record, self.repo), None

    def _replay(self, existing: IdempotencyRecord, request_hash: str) -> IdempotencyReplay:
        if existing.request_hash != request_hash:
            raise AppError(
                ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD,
                details={"idempotency_key": existing.idempotency_key},
            )
        if existing.state == STATE_IN_PROGRESS or existing.response_body is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        metrics.increment_idempotency_replay()
        return IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def extract_idempotency_key(headers, *, required: bool = False) -> str | None:
    key = (headers.get(IDEMPOTENCY_HEADER) or "").strip()
    if not key:
        if required:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REQUIRED)
        return None
    return key
