"""Vision renamer package."""

from .archive import ArchiveBuildFailure, EmptyBatchError, build_archive, plan_renames
from .captioner import CaptionFailure, VisionCaptioner, sanitize_caption
from .models import QueueItemView, QueueStats, RenamedFile, RenameSettings
from .queue import BatchQueue, InvalidTransition, QueueItem, UploadedFile
from .worker import CaptionWorker

__all__ = [
    "ArchiveBuildFailure",
    "EmptyBatchError",
    "build_archive",
    "plan_renames",
    "CaptionFailure",
    "VisionCaptioner",
    "sanitize_caption",
    "QueueItemView",
    "QueueStats",
    "RenamedFile",
    "RenameSettings",
    "BatchQueue",
    "InvalidTransition",
    "QueueItem",
    "UploadedFile",
    "CaptionWorker",
]
