"""In-memory batch queue holding uploaded files and their caption state."""

import logging
import time
import uuid
from pathlib import PurePosixPath
from typing import Any, Callable, Iterable, Optional

from .models import ITEM_STATUSES, QueueItemView

logger = logging.getLogger(__name__)

MAX_QUEUE_SIZE = 200

# Allowed forward moves; anything else is rejected.
_TRANSITIONS = {
    "idle": {"processing"},
    "processing": {"done", "error"},
    "done": set(),
    "error": set(),
}


class InvalidTransition(ValueError):
    """Raised when an item would move backwards in its lifecycle."""


class UploadedFile:
    """An uploaded file payload."""

    def __init__(self, filename: str, content: bytes, content_type: Optional[str] = None):
        # Client paths are reduced to the bare name
        self.filename = PurePosixPath(filename.replace("\\", "/")).name or "upload"
        self.content = content
        self.content_type = content_type or "application/octet-stream"


class QueueItem:
    """Represents an item in the queue."""

    def __init__(
        self,
        file: UploadedFile,
        id: Optional[str] = None,
        timestamp: Optional[float] = None,
    ):
        self.id = id or uuid.uuid4().hex[:12]
        self.file = file
        self.preview_handle: Optional[str] = f"/api/items/{self.id}/preview"
        self.caption: Optional[str] = None
        self.error: Optional[str] = None
        self.status = "idle"
        self.timestamp = timestamp or time.time()
        self.completed_at: Optional[float] = None

    @property
    def filename(self) -> str:
        return self.file.filename

    @property
    def content_type(self) -> str:
        return self.file.content_type

    @property
    def is_image(self) -> bool:
        return self.content_type.lower().startswith("image/")

    def transition(self, status: str):
        """Move to ``status``, enforcing idle -> processing -> done|error."""
        if status not in _TRANSITIONS.get(self.status, set()):
            raise InvalidTransition(f"Item {self.id}: cannot go from {self.status} to {status}")
        self.status = status

    def release_preview(self):
        self.preview_handle = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "filename": self.filename,
            "content_type": self.content_type,
            "size": len(self.file.content),
            "status": self.status,
            "caption": self.caption,
            "error": self.error,
            "preview_url": self.preview_handle,
            "created_at": self.timestamp,
            "completed_at": self.completed_at,
        }

    def to_view(self, target_name: Optional[str] = None) -> QueueItemView:
        return QueueItemView(**self.to_dict(), target_name=target_name)


class BatchQueue:
    """Ordered in-memory queue; the only place queue state is changed."""

    def __init__(self, max_size: int = MAX_QUEUE_SIZE):
        self.max_size = max_size
        self._items: list[QueueItem] = []
        self._listeners: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._items)

    def subscribe(self, callback: Callable[[], None]):
        """Register a callback run after every queue mutation."""
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[], None]):
        """Remove a callback registered with subscribe."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        for callback in self._listeners:
            callback()

    def enqueue(self, files: Iterable[UploadedFile]) -> list[QueueItem]:
        """Append files as idle items, keeping at most ``max_size`` in total.

        Args:
            files: Uploaded files in the order they were picked or dropped

        Returns:
            The items that made it into the queue
        """
        new_items = [QueueItem(file) for file in files]
        room = max(self.max_size - len(self._items), 0)
        accepted = new_items[:room]
        dropped = len(new_items) - len(accepted)

        self._items = self._items + accepted

        if dropped:
            logger.warning(f"Queue full ({self.max_size}): dropped {dropped} file(s)")
        logger.info(f"Enqueued {len(accepted)} file(s), queue size {len(self._items)}")

        self._notify()
        return accepted

    def clear(self):
        """Release every preview and empty the queue."""
        for item in self._items:
            item.release_preview()
        count = len(self._items)
        self._items = []
        logger.info(f"Cleared {count} item(s)")
        self._notify()

    def get(self, item_id: str) -> QueueItem:
        for item in self._items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    def pop(self) -> Optional[QueueItem]:
        """Claim the next idle image for captioning.

        Returns:
            The claimed item, now ``processing``, or None when an item is
            already in flight or no idle image is waiting
        """
        if any(item.status == "processing" for item in self._items):
            return None

        for item in self._items:
            if item.status == "idle" and item.is_image:
                item.transition("processing")
                return item
        return None

    def ack(self, item_id: str, caption: str):
        """Record a successful caption.

        Args:
            item_id: ID of the item
            caption: Sanitized caption text
        """
        item = self.get(item_id)
        item.transition("done")
        item.caption = caption
        item.completed_at = time.time()
        self._notify()

    def fail(self, item_id: str, error: str = ""):
        """Mark an item as failed.

        Args:
            item_id: ID of the item
            error: Error message
        """
        item = self.get(item_id)
        item.transition("error")
        item.error = error
        item.completed_at = time.time()
        self._notify()

    def get_items(self, status: Optional[str] = None) -> list[QueueItem]:
        """Get items in queue order, optionally filtered by status."""
        if status is None:
            return list(self._items)
        return [item for item in self._items if item.status == status]

    def done_items(self) -> list[QueueItem]:
        return self.get_items(status="done")

    def get_stats(self) -> dict[str, Any]:
        """Get queue statistics.

        Returns:
            Dictionary with per-status counts, total and progress
        """
        stats = {status: 0 for status in ITEM_STATUSES}
        for item in self._items:
            stats[item.status] += 1

        total = len(self._items)
        stats["total"] = total
        stats["progress_percent"] = round(stats["done"] / total * 100, 1) if total else 0.0
        return stats
