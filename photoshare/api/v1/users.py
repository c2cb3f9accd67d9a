"""User management API endpoints (root only)."""

from fastapi import APIRouter, HTTPException, status

from photoshare.core.config import get_settings
from photoshare.core.deps import DBSession, RootUser
from photoshare.schemas.auth import UserCreate, UserDTO, UserUpdate
from photoshare.services.user_service import UserService, UsernameTakenError

router = APIRouter()


@router.get("", response_model=list[UserDTO])
async def list_users(db: DBSession, current_user: RootUser) -> list[UserDTO]:
    """List accounts other than the seeded root account."""
    users = await UserService(db).list_users(exclude_username=get_settings().admin_user)
    return [UserDTO.model_validate(u) for u in users]


@router.post("", response_model=UserDTO, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, db: DBSession, current_user: RootUser) -> UserDTO:
    """
    Create an organizer account.

    - **username**: Unique login name
    - **password**: Initial password
    - **role**: `admin` (default) or `root`
    """
    try:
        user = await UserService(db).create_user(
            data.username, data.password, display_name=data.display_name, role=data.role
        )
    except UsernameTakenError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )
    return UserDTO.model_validate(user)


@router.patch("/{user_id}", response_model=UserDTO)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: DBSession,
    current_user: RootUser,
) -> UserDTO:
    """Update username, display name, password or role."""
    try:
        user = await UserService(db).update_user(user_id, data)
    except UsernameTakenError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserDTO.model_validate(user)


@router.delete("/{user_id}")
async def delete_user(user_id: int, db: DBSession, current_user: RootUser) -> dict:
    """Delete an account. The seeded root account cannot be deleted."""
    user_service = UserService(db)
    user = await user_service.get_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    if user.username == get_settings().admin_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete the root account",
        )

    await user_service.delete(user)
    return {"deleted": True}
