"""Data models for the renamer."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ItemStatus = Literal["idle", "processing", "done", "error"]

ITEM_STATUSES = ("idle", "processing", "done", "error")


class RenameSettings(BaseModel):
    """Numbering applied when the archive is built."""
    model_config = ConfigDict(frozen=True)

    start_number: int = Field(default=1, ge=0)
    zero_pad: int = Field(default=2, ge=1, le=3)


class QueueItemView(BaseModel):
    """Public view of a queue item (no file bytes)."""
    id: str
    filename: str
    content_type: str
    size: int
    status: ItemStatus
    caption: Optional[str] = None
    error: Optional[str] = None
    preview_url: Optional[str] = None
    target_name: Optional[str] = None
    created_at: float
    completed_at: Optional[float] = None


class EnqueueResult(BaseModel):
    """Outcome of an upload."""
    added: int
    dropped: int
    items: list[QueueItemView]


class QueueStats(BaseModel):
    """Queue statistics."""
    total: int
    idle: int
    processing: int
    done: int
    error: int
    progress_percent: float


class RenamedFile(BaseModel):
    """One entry of the rename plan."""
    item_id: str
    original_name: str
    new_name: str
    sequence: str
