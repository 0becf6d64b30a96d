from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from classroom.core.security import create_hashed_password
from classroom.models.profile import Profile, RoleType


def get_profile(db: Session, profile_id: int) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == profile_id).first()


def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.email == email.lower()).first()


def create_profile(db: Session, email: str, full_name: str, password: str, role: RoleType) -> Profile:
    profile = Profile(
        email=email.lower(),
        full_name=full_name,
        role=role,
        hashed_password=create_hashed_password(password),
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def list_profiles(db: Session, role: Optional[RoleType] = None, search: Optional[str] = None) -> List[Profile]:
    query = db.query(Profile)
    if role is not None:
        query = query.filter(Profile.role == role)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(Profile.full_name.ilike(pattern), Profile.email.ilike(pattern)))
    return query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()


def update_profile(db: Session, profile: Profile, **fields) -> Profile:
    for key, value in fields.items():
        setattr(profile, key, value)
    db.commit()
    db.refresh(profile)
    return profile
