"""Photo schemas for API request/response."""

from pydantic import BaseModel, Field


class PhotoDTO(BaseModel):
    """Photo response schema with public URLs."""

    id: int
    event_id: int | None = Field(None, alias="eventId")
    filename: str
    original_name: str | None = Field(None, alias="originalName")
    media_type: str = Field("image", alias="mediaType")
    status: str
    likes: int = 0
    uploaded_at: int | None = Field(None, alias="uploadedAt")
    url: str = ""
    preview_url: str = Field("", alias="previewUrl")

    model_config = {"populate_by_name": True, "from_attributes": True}


class UploadResponse(BaseModel):
    """Stored uploads."""

    uploaded: list[PhotoDTO]


class ModerationRequest(BaseModel):
    """Batch moderation request."""

    ids: list[int] = []


class ModerationFailure(BaseModel):
    """Item that could not be processed."""

    id: int
    reason: str


class ApproveResponse(BaseModel):
    """Batch approval outcome."""

    updated: int
    updated_ids: list[int] = Field([], alias="updatedIds")
    not_found: list[int] = Field([], alias="notFound")
    failed: list[ModerationFailure] = []

    model_config = {"populate_by_name": True}


class DeleteResponse(BaseModel):
    """Batch deletion outcome."""

    deleted: int
    not_found: list[int] = Field([], alias="notFound")

    model_config = {"populate_by_name": True}


class LikeResponse(BaseModel):
    """Likes after an increment."""

    likes: int


class PendingCountResponse(BaseModel):
    """Pending media counts."""

    total: int
    by_event: dict[int, int] = Field({}, alias="byEvent")

    model_config = {"populate_by_name": True}
