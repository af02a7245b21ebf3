"""Admin account bootstrap.

Seeds a real ADMIN user from configuration so no credentials live in code.
"""

import logging

from sqlalchemy.orm import Session

from clipshare.db.models import User, UserRole
from clipshare.db.session import transaction
from clipshare.services.users import create_user, get_user_by_email, set_banned, set_role

logger = logging.getLogger(__name__)


def ensure_bootstrap_admin(db: Session, email: str, password: str, name: str = "Admin") -> User:
    """Ensure an ADMIN user with this email exists.

    Idempotent: creates the account on first run, promotes (and unbans) an
    existing account with the same email otherwise. An existing password is
    never overwritten.

    Args:
        db: Database session.
        email: Admin email.
        password: Password used only when the account is created.
        name: Display name used only when the account is created.

    Returns:
        The admin user.
    """
    user = get_user_by_email(db, email)
    if user is None:
        user = create_user(db, email=email, name=name, password=password, role=UserRole.ADMIN.value)
        logger.info("bootstrap_admin_created user_id=%s", user.id)
        return user

    if user.role != UserRole.ADMIN.value or user.banned:
        with transaction(db):
            set_role(db, user.id, UserRole.ADMIN.value)
            set_banned(db, user.id, False, admin_id=None)
        logger.info("bootstrap_admin_promoted user_id=%s", user.id)
    return user
