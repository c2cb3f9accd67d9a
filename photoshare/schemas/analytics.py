"""Analytics schemas for API response."""

from pydantic import BaseModel, Field


class AnalyticsSummary(BaseModel):
    """Totals across all events."""

    total_events: int = Field(0, alias="totalEvents")
    total_photos: int = Field(0, alias="totalPhotos")
    total_size_bytes: int = Field(0, alias="totalSizeBytes")
    deleted_photos: int = Field(0, alias="deletedPhotos")

    model_config = {"populate_by_name": True}


class UploadsByDay(BaseModel):
    """Uploads stored on one UTC day."""

    day: str
    total: int
