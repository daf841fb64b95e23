"""
Create or promote the platform admin account.

    python -m app.seed

Reads ADMIN_EMAIL / ADMIN_PASSWORD from the environment (or .env).
"""
import logging
import sys
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import ADMIN_EMAIL, ADMIN_PASSWORD
from app.core.security import hash_password
from app.db.base import Base, SessionLocal, engine
from app.db.models import booking, provider, review, service, service_details, template  # noqa: F401
from app.db.models.enums import UserRole
from app.db.models.user import User

logger = logging.getLogger(__name__)


def ensure_admin(db: Session, email: str, password: Optional[str], name: str = "Admin") -> User:
    """Promote an existing account to ADMIN, or create it when missing."""
    user = db.query(User).filter(User.email == email).first()
    if user:
        if user.role != UserRole.ADMIN.value:
            user.role = UserRole.ADMIN.value
            logger.info(f"Promoted existing user {user.id} ({email}) to ADMIN")
        else:
            logger.info(f"User {user.id} ({email}) is already ADMIN")
    else:
        if not password:
            raise ValueError("ADMIN_PASSWORD must be set to create the admin account")
        user = User(email=email, name=name, password_hash=hash_password(password), role=UserRole.ADMIN.value)
        db.add(user)
        logger.info(f"Created admin account {email}")

    db.commit()
    db.refresh(user)
    return user


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        ensure_admin(db, ADMIN_EMAIL, ADMIN_PASSWORD)
    except ValueError as e:
        logger.error(str(e))
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
