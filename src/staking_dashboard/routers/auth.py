"""Registration and login routes."""
from fastapi import APIRouter, status

from staking_dashboard.deps import SessionDep, UserServiceDep
from staking_dashboard.schemas import (LoginRequest, RegisterRequest,
                                       TokenResponse, UserRead)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, session: SessionDep, users: UserServiceDep) -> UserRead:
    """Create an account, optionally linked to a referrer by referral code."""
    return UserRead.model_validate(users.register(session, body))


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, session: SessionDep, users: UserServiceDep) -> TokenResponse:
    """Exchange username and password for a bearer token."""
    user = users.authenticate(session, body.username, body.password)
    return TokenResponse(access_token=users.create_token(user))
