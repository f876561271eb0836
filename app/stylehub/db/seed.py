from sqlalchemy import select

from app.stylehub.core.config import settings
from app.stylehub.core.security import ROLE_ADMIN, get_password_hash
from app.stylehub.db.models import User


def _get_or_create_admin(db):
    user = db.execute(select(User).where(User.email == settings.ADMIN_EMAIL)).scalars().first()
    if user:
        return user
    user = User(
        email=settings.ADMIN_EMAIL,
        name=settings.ADMIN_NAME,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=ROLE_ADMIN,
        is_active=True,
    )
    db.add(user)
    return user


def run_seed(db):
    admin = _get_or_create_admin(db)
    db.commit()
    return admin


if __name__ == "__main__":
    from app.stylehub.db.session import SessionLocal

    with SessionLocal() as session:
        run_seed(session)
