"""Rename captioned files with a sequence number and pack them into a zip."""

import io
import logging
import zipfile
from typing import Iterable

from .models import RenamedFile, RenameSettings
from .queue import QueueItem

logger = logging.getLogger(__name__)

ARCHIVE_FILENAME = "vision-ai-renamed.zip"


class EmptyBatchError(ValueError):
    """No captioned files to archive."""


class ArchiveBuildFailure(RuntimeError):
    """Packaging the archive failed."""


def file_extension(filename: str) -> str:
    """Return the suffix from the last dot, including the dot ('' if none)."""
    dot = filename.rfind(".")
    if dot == -1:
        return ""
    suffix = filename[dot:]
    if "/" in suffix or "\\" in suffix:
        return ""
    return suffix


def format_sequence_number(number: int, zero_pad: int) -> str:
    """Left-pad with zeros to ``zero_pad`` digits; longer numbers are kept whole."""
    return str(number).rjust(zero_pad, "0")


def target_name(caption: str, number: int, zero_pad: int, filename: str) -> str:
    return f"{caption}-{format_sequence_number(number, zero_pad)}{file_extension(filename)}"


def plan_renames(items: Iterable[QueueItem], settings: RenameSettings) -> list[RenamedFile]:
    """Compute new names for the done items, numbered in queue order.

    Args:
        items: Queue items in queue order (any status)
        settings: Start number and padding width

    Returns:
        One RenamedFile per done item

    Raises:
        EmptyBatchError: If no item is done
    """
    finished = [item for item in items if item.status == "done"]
    if not finished:
        raise EmptyBatchError("No files processed by AI yet.")

    plan = []
    for index, item in enumerate(finished):
        number = settings.start_number + index
        plan.append(
            RenamedFile(
                item_id=item.id,
                original_name=item.filename,
                new_name=target_name(item.caption, number, settings.zero_pad, item.filename),
                sequence=format_sequence_number(number, settings.zero_pad),
            )
        )
    return plan


def build_archive(items: Iterable[QueueItem], settings: RenameSettings) -> bytes:
    """Pack every done item's original bytes under its new name.

    Args:
        items: Queue items in queue order
        settings: Start number and padding width

    Returns:
        The zip archive as bytes

    Raises:
        EmptyBatchError: If no item is done
        ArchiveBuildFailure: If writing the archive fails
    """
    items = list(items)
    plan = plan_renames(items, settings)
    contents = {item.id: item.file.content for item in items}

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry in plan:
                zf.writestr(entry.new_name, contents[entry.item_id])
    except Exception as e:
        logger.error(f"Error creating archive: {e}", exc_info=True)
        raise ArchiveBuildFailure("Error creating ZIP.") from e

    logger.info(f"Built archive with {len(plan)} file(s)")
    return buffer.getvalue()
