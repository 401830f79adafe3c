"""Make sure the primordial admin account exists on startup.

The account ``admin@<EMAIL_DOMAIN>`` is created with the configured initial
password when missing. If it exists but has been left inactive or demoted
(e.g. by a direct database edit) it is repaired. Its password is never
touched once set.
"""

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings

logger = logging.getLogger(__name__)


def seed_primordial_admin(db: Session) -> bool:
    """Create or repair the primordial admin.

    Args:
        db: An open SQLAlchemy session.

    Returns:
        True if anything was written.
    """
    from ..models.user import User
    from ..services.auth_service import hash_password
    from ..services.clock import utcnow

    email = settings.admin_email
    admin = db.query(User).filter(User.email == email).first()

    if admin is None:
        admin = User(
            id=str(uuid.uuid4()),
            name=settings.admin_name,
            email=email,
            password_hash=hash_password(settings.admin_initial_password),
            role="admin",
            status="active",
            created_at=utcnow(),
        )
        db.add(admin)
        action = "Created"
    elif admin.role != "admin" or admin.status != "active":
        admin.role = "admin"
        admin.status = "active"
        action = "Repaired"
    else:
        logger.debug("Primordial admin %s present", email)
        return False

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Failed to seed primordial admin %s", email, exc_info=True)
        raise
    logger.info("%s primordial admin %s", action, email)
    return True
