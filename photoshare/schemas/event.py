"""Event schemas for API request/response."""

from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    """Event creation schema."""

    name: str = Field(..., min_length=1)
    date: str = ""
    description: str | None = None
    start_time: str | None = Field(None, alias="startTime")

    model_config = {"populate_by_name": True}


class EventUpdate(BaseModel):
    """Event settings update schema."""

    name: str = ""
    date: str = ""
    description: str = ""
    start_time: str | None = Field(None, alias="startTime")
    require_moderation: bool = Field(False, alias="requireModeration")
    upload_access: str = Field("all", alias="uploadAccess")
    view_access: str = Field("link", alias="viewAccess")
    auto_delete_days: int | None = Field(14, alias="autoDeleteDays")
    branding_color: str = Field("", alias="brandingColor")
    branding_background: str = Field("", alias="brandingBackground")
    notify_before_delete: bool = Field(False, alias="notifyBeforeDelete")

    model_config = {"populate_by_name": True}


class EventDTO(BaseModel):
    """Event response schema."""

    id: int
    name: str
    date: str = ""
    description: str | None = None
    status: str
    scheduled_start_at: int | None = Field(None, alias="scheduledStartAt")
    auto_end_at: int | None = Field(None, alias="autoEndAt")
    owner_id: int | None = Field(None, alias="ownerId")
    owner_username: str | None = Field(None, alias="ownerUsername")
    require_moderation: bool = Field(False, alias="requireModeration")
    upload_access: str = Field("all", alias="uploadAccess")
    view_access: str = Field("link", alias="viewAccess")
    auto_delete_days: int = Field(14, alias="autoDeleteDays")
    notify_before_delete: bool = Field(False, alias="notifyBeforeDelete")
    photo_count: int = Field(0, alias="photoCount")
    like_count: int = Field(0, alias="likeCount")
    deleted_photo_count: int = Field(0, alias="deletedPhotoCount")
    branding_color: str | None = Field(None, alias="brandingColor")
    branding_background: str | None = Field(None, alias="brandingBackground")
    branding_background_url: str = Field("", alias="brandingBackgroundUrl")
    qr_code: str | None = Field(None, alias="qrCode")
    access_link: str | None = Field(None, alias="accessLink")
    active_users: int = Field(0, alias="activeUsers")
    created_at: int | None = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True, "from_attributes": True}


class EventStatusUpdate(BaseModel):
    """Requested status change."""

    status: str | None = None


class EventStatusResponse(BaseModel):
    """Status after a transition."""

    id: int
    status: str
    scheduled_start_at: int | None = Field(None, alias="scheduledStartAt")
    auto_end_at: int | None = Field(None, alias="autoEndAt")
    changed: bool = False

    model_config = {"populate_by_name": True}


class PresenceRequest(BaseModel):
    """Heartbeat or leave signal from a gallery viewer."""

    client_id: str | None = Field(None, alias="clientId")

    model_config = {"populate_by_name": True}


class PresenceResponse(BaseModel):
    """Current viewer count."""

    count: int


class BrandingBackgroundResponse(BaseModel):
    """Stored branding background."""

    path: str
    url: str


class EventAuditDTO(BaseModel):
    """Audit record response schema."""

    id: int
    event_id: int = Field(..., alias="eventId")
    owner_id: int | None = Field(None, alias="ownerId")
    name: str
    created_at: int | None = Field(None, alias="createdAt")
    deleted_at: int = Field(..., alias="deletedAt")
    total_photos_at_delete: int = Field(0, alias="totalPhotosAtDelete")
    deleted_photos_cumulative: int = Field(0, alias="deletedPhotosCumulative")

    model_config = {"populate_by_name": True, "from_attributes": True}
