import logging

from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.crud.profiles import create_profile, get_profile_by_email
from classroom.models.profile import RoleType

logger = logging.getLogger(__name__)


def init_db(db: Session) -> None:
    """Create the default admin profile when one is configured and missing"""
    settings = get_settings()
    if not settings.DEFAULT_ADMIN_EMAIL or not settings.DEFAULT_ADMIN_PASSWORD:
        return

    existing_admin = get_profile_by_email(db, settings.DEFAULT_ADMIN_EMAIL)
    if existing_admin:
        return

    try:
        create_profile(
            db,
            email=settings.DEFAULT_ADMIN_EMAIL,
            full_name=settings.DEFAULT_ADMIN_NAME,
            password=settings.DEFAULT_ADMIN_PASSWORD,
            role=RoleType.ADMIN,
        )
    except Exception:
        db.rollback()
        raise
    logger.info(f"Created default admin {settings.DEFAULT_ADMIN_EMAIL}")
