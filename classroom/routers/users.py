from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom.core.exceptions import ValidationFailed
from classroom.crud.profiles import update_profile
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, get_session_context
from classroom.schemas.profile import ProfileResponse, ProfileUpdateRequest

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ProfileResponse)
def get_current_user_info(context: SessionContext = Depends(get_session_context)):
    return context.profile


@router.patch("/me", response_model=ProfileResponse)
def update_current_user(
    request: ProfileUpdateRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    fields = request.model_dump(exclude_unset=True)
    if "full_name" in fields:
        fields["full_name"] = (fields["full_name"] or "").strip()
        if not fields["full_name"]:
            raise ValidationFailed("Full name is required")
    if "avatar_url" in fields:
        # Empty string clears the avatar
        fields["avatar_url"] = (fields["avatar_url"] or "").strip() or None
    # Role and email are not editable here
    return update_profile(db, context.profile, **fields)
