"""Auth service for authentication."""

from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.core.security import create_access_token
from photoshare.models.user import User
from photoshare.schemas.auth import Token
from photoshare.services.user_service import UserService


def issue_token(user: User) -> Token:
    """Sign a token carrying the principal the API authorizes against."""
    token = create_access_token(
        data={
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
            "name": user.display_name or user.username,
        }
    )
    return Token(token=token)


class AuthService:
    """Authentication service."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    async def login(self, username: str, password: str) -> Token | None:
        """Authenticate user and return JWT token."""
        user = await self.user_service.authenticate(username, password)
        if not user:
            return None
        return issue_token(user)
