"""Authentication and user schemas."""

from pydantic import BaseModel, Field


class UserLogin(BaseModel):
    """Login request schema."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="User password")


class Token(BaseModel):
    """JWT token response schema."""

    token: str = Field(..., description="JWT access token")


class UserCreate(BaseModel):
    """User creation schema."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    display_name: str | None = Field(None, alias="displayName")
    role: str | None = None

    model_config = {"populate_by_name": True}


class UserUpdate(BaseModel):
    """Partial user update schema."""

    username: str | None = None
    password: str | None = None
    display_name: str | None = Field(None, alias="displayName")
    role: str | None = None

    model_config = {"populate_by_name": True}


class UserDTO(BaseModel):
    """User response schema."""

    id: int
    username: str
    display_name: str | None = Field(None, alias="displayName")
    role: str
    created_at: int | None = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True, "from_attributes": True}
