"""FastAPI dependencies for dependency injection."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.core.security import token_user_id
from photoshare.db.session import async_session_maker
from photoshare.models.event import Event
from photoshare.models.user import User
from photoshare.services.presence import PresenceStore, get_presence_store
from photoshare.services.storage import FileStorage, get_storage
from photoshare.services.user_service import UserService
from photoshare.workers.file_cleanup import FileCleanupWorker, get_file_cleanup

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Get current authenticated user from JWT token."""
    if not credentials:
        return None

    user_id = token_user_id(credentials.credentials)
    if user_id is None:
        return None

    user = await UserService(db).get_by_id(user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user_required(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Require authenticated user, raise 401 if not authenticated."""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_root_user(
    user: Annotated[User, Depends(get_current_user_required)],
) -> User:
    """Require a root user, raise 403 otherwise."""
    if not user.is_root:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


# Type aliases for cleaner dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User | None, Depends(get_current_user)]
CurrentUserRequired = Annotated[User, Depends(get_current_user_required)]
RootUser = Annotated[User, Depends(get_root_user)]
Storage = Annotated[FileStorage, Depends(get_storage)]
Presence = Annotated[PresenceStore, Depends(get_presence_store)]
Cleanup = Annotated[FileCleanupWorker, Depends(get_file_cleanup)]


def parse_id(value: str | int | None, field: str = "id") -> int:
    """Parse a positive integer identifier, raise 400 naming ``field`` otherwise."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        parsed = 0
    if parsed <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field}",
        )
    return parsed


async def get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


async def get_managed_event(db: AsyncSession, event_id: int, user: User) -> Event:
    """Load an event the user may manage: 404 when unknown, 403 when not owner."""
    event = await get_event_or_404(db, event_id)
    if not user.can_manage(event.owner_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return event
