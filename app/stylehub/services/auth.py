from sqlalchemy.exc import IntegrityError

from app.stylehub.core.config import settings
from app.stylehub.core.error_catalog import AppError, ErrorCatalog
from app.stylehub.core.security import create_user_access_token, get_password_hash, verify_password
from app.stylehub.db.models import User
from app.stylehub.repos.users import UserRepository
from app.stylehub.services.audit import AuditService, audit_payload_for

_DUPLICATE_EMAIL = {"message": "Email already registered", "field": "email"}


class AuthService:
    def __init__(self, db):
        self.db = db
        self.repo = UserRepository(db)
        self.audit = AuditService(db)

    def login(self, email: str, password: str, *, trace_id: str | None = None) -> tuple[User, str]:
        """Check credentials and issue a bearer token.

        Both outcomes are audited; a failure is only attributed when the email
        belongs to a known user.
        """
        user = self.repo.get_by_email(email)
        try:
            if user is None or not verify_password(password, user.hashed_password):
                raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
            if not user.is_active:
                raise AppError(ErrorCatalog.USER_INACTIVE)
        except AppError as exc:
            if user is not None:
                self.audit.record_event(
                    audit_payload_for(
                        user,
                        trace_id=trace_id,
                        action="auth.login.failed",
                        entity_type="user",
                        entity_id=user.id,
                        metadata={"error_code": exc.code},
                        result="failure",
                    )
                )
            raise

        self.audit.record_event(
            audit_payload_for(user, trace_id=trace_id, action="auth.login", entity_type="user", entity_id=user.id)
        )
        return user, create_user_access_token(user)

    @staticmethod
    def expires_in_seconds() -> int:
        return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def register_user(self, *, email: str, name: str, password: str, role: str) -> User:
        if self.repo.get_by_email(email) is not None:
            raise AppError(ErrorCatalog.CONFLICT, details=_DUPLICATE_EMAIL)
        user = User(
            email=email.strip().lower(),
            name=name.strip(),
            hashed_password=get_password_hash(password),
            role=role,
            is_active=True,
        )
        try:
            return self.repo.create(user)
        except IntegrityError as exc:
            self.db.rollback()
            raise AppError(ErrorCatalog.CONFLICT, details=_DUPLICATE_EMAIL) from exc
