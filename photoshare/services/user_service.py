"""User service for organizer accounts."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.core.security import get_password_hash, verify_password
from photoshare.models.user import ROLE_ADMIN, ROLE_ROOT, User
from photoshare.schemas.auth import UserUpdate
from photoshare.services.base_service import BaseService


class UsernameTakenError(Exception):
    """Raised when a username is already in use."""


def normalize_role(role: str | None) -> str:
    return ROLE_ROOT if role == ROLE_ROOT else ROLE_ADMIN


class UserService(BaseService[User]):
    """User service for authentication and management."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        result = await self.db.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def authenticate(self, username: str, password: str) -> User | None:
        """Authenticate user by username and password."""
        user = await self.get_by_username(username)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    async def list_users(self, exclude_username: str | None = None) -> list[User]:
        query = select(User).order_by(User.id)
        if exclude_username:
            query = query.where(User.username != exclude_username)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_user(
        self,
        username: str,
        password: str,
        display_name: str | None = None,
        role: str | None = None,
    ) -> User:
        """Create new user. Unknown roles become admin."""
        user = User(
            username=username,
            hashed_password=get_password_hash(password),
            display_name=display_name,
            role=normalize_role(role),
            is_active=True,
        )
        try:
            return await self.create(user)
        except IntegrityError as e:
            await self.db.rollback()
            raise UsernameTakenError(username) from e

    async def update_user(self, user_id: int, data: UserUpdate) -> User | None:
        """Apply a partial update; returns None for unknown users."""
        user = await self.get_by_id(user_id)
        if not user:
            return None

        if data.username and data.username != user.username:
            user.username = data.username
        if data.display_name is not None:
            user.display_name = data.display_name or None
        if data.password:
            user.hashed_password = get_password_hash(data.password)
        if data.role in (ROLE_ADMIN, ROLE_ROOT):
            user.role = data.role

        try:
            return await self.update(user)
        except IntegrityError as e:
            await self.db.rollback()
            raise UsernameTakenError(data.username or "") from e

    async def ensure_root_user(self, username: str, password: str) -> User:
        """Create the configured root account if it does not exist yet."""
        existing = await self.get_by_username(username)
        if existing:
            return existing
        return await self.create_user(username, password, role=ROLE_ROOT)
