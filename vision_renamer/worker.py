"""Single-flight worker that captions queued images one at a time."""

import asyncio
import logging
from typing import Optional

from .captioner import CaptionFailure, VisionCaptioner
from .queue import BatchQueue, QueueItem

logger = logging.getLogger(__name__)


class CaptionWorker:
    """Worker that captions items from the queue."""

    def __init__(
        self,
        queue: BatchQueue,
        captioner: VisionCaptioner,
        poll_interval: float = 5.0,
    ):
        self.queue = queue
        self.captioner = captioner
        self.poll_interval = poll_interval
        self.running = False
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        queue.subscribe(self._wakeup.set)

    async def run(self):
        """Run the worker loop."""
        self.running = True
        logger.info("Caption worker started")
        try:
            while self.running:
                item = self.queue.pop()

                if item is None:
                    # Nothing to do until the queue changes
                    self._wakeup.clear()
                    try:
                        await asyncio.wait_for(self._wakeup.wait(), timeout=self.poll_interval)
                    except asyncio.TimeoutError:
                        pass
                    continue

                await self.process_item(item)
        finally:
            self.running = False
            logger.info("Caption worker stopped")

    async def drain(self) -> int:
        """Caption every waiting image, then return how many were processed."""
        processed = 0
        while (item := self.queue.pop()) is not None:
            await self.process_item(item)
            processed += 1
        return processed

    async def process_item(self, item: QueueItem):
        """Caption a single claimed item and write the result back.

        Args:
            item: QueueItem already moved to ``processing``
        """
        try:
            caption = await self.captioner.caption(item.file.content, item.content_type)
        except CaptionFailure as e:
            logger.error(f"Caption failed for item {item.id} ({item.filename}): {e}")
            self._write_back(self.queue.fail, item, str(e))
            return
        except Exception as e:
            logger.error(f"Error processing item {item.id}: {e}", exc_info=True)
            self._write_back(self.queue.fail, item, str(e))
            return

        self._write_back(self.queue.ack, item, caption)
        logger.info(f"Captioned item {item.id}: {item.filename} -> {caption}")

    def _write_back(self, update, item: QueueItem, value: str):
        try:
            update(item.id, value)
        except KeyError:
            # Cleared while in flight
            logger.info(f"Item {item.id} left the queue before its caption arrived")

    def start(self) -> asyncio.Task:
        """Start the loop as a background task on the running event loop."""
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        """Stop the worker."""
        self.running = False
        self.queue.unsubscribe(self._wakeup.set)
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
