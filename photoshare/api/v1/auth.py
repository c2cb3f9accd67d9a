"""Authentication API endpoints."""

from fastapi import APIRouter, HTTPException, status

from photoshare.core.deps import CurrentUserRequired, DBSession
from photoshare.schemas.auth import Token, UserLogin
from photoshare.services.auth_service import AuthService, issue_token

router = APIRouter()


@router.post("/login", response_model=Token)
async def login(
    credentials: UserLogin,
    db: DBSession,
) -> Token:
    """
    Login and get JWT access token.

    - **username**: Account name
    - **password**: Account password
    """
    auth_service = AuthService(db)
    token = await auth_service.login(credentials.username, credentials.password)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    return token


@router.post("/refresh", response_model=Token)
async def refresh(current_user: CurrentUserRequired) -> Token:
    """Issue a fresh token for the authenticated user."""
    return issue_token(current_user)
