from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.core.exceptions import NotAuthenticated, NotAuthorized
from classroom.core.security import resolve_token
from classroom.crud.profiles import get_profile
from classroom.db.session import get_db
from classroom.models.profile import Profile
from classroom.services.capabilities import Viewer
from classroom.services.file_storage import ObjectStorage, get_storage
from classroom.utils.helpers import get_utc_now

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().API_V1_PREFIX}/auth/login")


@dataclass
class SessionContext:
    profile: Profile
    viewer: Viewer


def get_session_context(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> SessionContext:
    """Resolve the bearer token to the caller's profile once per request."""
    profile_id = resolve_token(token)
    profile = get_profile(db, profile_id)
    if profile is None:
        raise NotAuthenticated("User not found")
    return SessionContext(profile=profile, viewer=Viewer.from_profile(profile))


def admin_required(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not context.viewer.is_admin:
        raise NotAuthorized("Admin access required")
    return context


def teacher_required(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not context.viewer.is_teacher:
        raise NotAuthorized("Teacher access required")
    return context


def get_clock() -> datetime:
    return get_utc_now()


def get_object_storage() -> ObjectStorage:
    return get_storage()
