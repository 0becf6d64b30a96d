from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from classroom.core.exceptions import Conflict
from classroom.core.security import generate_token, verify_password
from classroom.crud.profiles import create_profile, get_profile_by_email
from classroom.db.session import get_db
from classroom.models.profile import RoleType
from classroom.schemas.profile import ProfileResponse, RegisterRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    if request.role == RoleType.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts can only be created by an administrator"
        )
    if get_profile_by_email(db, request.email):
        raise Conflict(f"Email {request.email} is already registered")

    return create_profile(
        db,
        email=request.email,
        full_name=request.full_name.strip(),
        password=request.password,
        role=request.role,
    )


@router.post("/login", response_model=TokenResponse)
def login(request: Annotated[OAuth2PasswordRequestForm, Depends()], db: Session = Depends(get_db)):
    profile = get_profile_by_email(db, request.username)

    # Verify credentials
    if not profile or not verify_password(request.password, profile.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    token = generate_token({"sub": str(profile.id)})
    return {
        "access_token": token,
        "token_type": "bearer",
        "role": profile.role,
    }
