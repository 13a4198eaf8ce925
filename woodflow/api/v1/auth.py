"""
Authentication API Routes
"""
import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.orm import Session

from woodflow.core.config import settings
from woodflow.core.database import get_db
from woodflow.core.security import create_access_token, get_current_user
from woodflow.models import User
from woodflow.schemas import (
    LoginRequest, SignupRequest, Token, UserResponse, MessageResponse, MembershipResponse,
    SwitchCompanyRequest,
)
from woodflow.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(response: Response, user: User) -> dict:
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(data={"sub": str(user.id)}, expires_delta=expires)
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=int(expires.total_seconds()),
        samesite="lax",
        secure=settings.is_production
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(signup_data: SignupRequest, response: Response, db: Session = Depends(get_db)):
    """Register a user account. Companies are created separately."""
    user = UserService(db).create(signup_data)
    db.commit()
    logger.info("User %s signed up", user.id)
    return _issue_token(response, user)


@router.post("/login", response_model=Token)
async def login(login_data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Login and get access token"""
    user = UserService(db).authenticate(login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    db.commit()
    return _issue_token(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie("access_token")
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Current user with all company memberships"""
    return {
        **UserResponse.model_validate(current_user).model_dump(),
        "memberships": [
            {
                **MembershipResponse.model_validate(m).model_dump(),
                "company_name": m.company.name if m.company else None,
            }
            for m in current_user.memberships
        ],
    }


@router.post("/switch-company", response_model=UserResponse)
async def switch_company(
    data: SwitchCompanyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Make another of the user's companies the active one"""
    user = UserService(db).switch_company(current_user, data.index)
    db.commit()
    return user
