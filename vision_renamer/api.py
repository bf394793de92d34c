"""FastAPI backend for the caption-and-rename queue."""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, PlainTextResponse, Response

from .archive import (
    ARCHIVE_FILENAME,
    ArchiveBuildFailure,
    EmptyBatchError,
    build_archive,
    plan_renames,
)
from .captioner import VisionCaptioner
from .config import Settings, settings
from .models import ITEM_STATUSES, EnqueueResult, QueueItemView, QueueStats, RenameSettings
from .offline_script import OFFLINE_SCRIPT
from .queue import BatchQueue, UploadedFile
from .worker import CaptionWorker

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FRONTEND_DIR = Path(__file__).parent / "frontend"

# Offered by the file picker; uploads of other types are still accepted.
ACCEPTED_EXTENSIONS = [
    ".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff", ".heic", ".avif",
]


def _target_names(queue: BatchQueue, rename_settings: RenameSettings) -> dict[str, str]:
    try:
        plan = plan_renames(queue.get_items(), rename_settings)
    except EmptyBatchError:
        return {}
    return {entry.item_id: entry.new_name for entry in plan}


def create_app(config: Settings = settings, captioner: Optional[VisionCaptioner] = None) -> FastAPI:
    """Build the application with its own queue, rename settings and worker."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cap = captioner or VisionCaptioner(
            api_key=config.api_key,
            model=config.model,
            api_base=config.api_base,
            timeout=config.request_timeout,
        )
        if not config.api_key and captioner is None:
            logger.warning("No API key configured; caption requests will be rejected")

        worker = CaptionWorker(app.state.queue, cap, poll_interval=config.poll_interval)
        app.state.worker = worker
        worker.start()
        try:
            yield
        finally:
            await worker.stop()
            await cap.aclose()

    app = FastAPI(
        title="Vision Renamer API",
        description="Caption images with a vision model and download them renamed",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.queue = BatchQueue(max_size=config.max_queue_size)
    app.state.rename_settings = RenameSettings()

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Vision Renamer API",
            "version": "1.0.0",
            "model": config.model,
            "accepted_extensions": ACCEPTED_EXTENSIONS,
            "endpoints": {
                "items": "/api/items",
                "upload": "/api/items (POST, multipart 'files')",
                "clear": "/api/items (DELETE)",
                "stats": "/api/stats",
                "settings": "/api/settings",
                "archive": "/api/archive",
                "offline_script": "/api/offline-script",
                "ui": "/ui",
            },
        }

    @app.post("/api/items", response_model=EnqueueResult)
    async def upload_files(request: Request, files: list[UploadFile] = File(...)):
        """Add uploaded files to the queue.

        Args:
            files: One or more files from the picker or a drop
        """
        queue: BatchQueue = request.app.state.queue

        uploads = []
        for file in files:
            content = await file.read()
            uploads.append(
                UploadedFile(
                    filename=file.filename or "upload",
                    content=content,
                    content_type=file.content_type,
                )
            )

        accepted = queue.enqueue(uploads)
        return EnqueueResult(
            added=len(accepted),
            dropped=len(uploads) - len(accepted),
            items=[item.to_view() for item in accepted],
        )

    @app.get("/api/items", response_model=list[QueueItemView])
    async def get_items(request: Request, status: Optional[str] = None):
        """Get items in queue order.

        Args:
            status: Filter by status (idle, processing, done, error)
        """
        if status and status not in ITEM_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {', '.join(ITEM_STATUSES)}"
            )

        queue: BatchQueue = request.app.state.queue
        names = _target_names(queue, request.app.state.rename_settings)
        return [item.to_view(names.get(item.id)) for item in queue.get_items(status=status)]

    @app.get("/api/items/{item_id}/preview")
    async def get_preview(request: Request, item_id: str):
        """Serve the original bytes of an item for display."""
        queue: BatchQueue = request.app.state.queue
        try:
            item = queue.get(item_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Item not found") from None

        if item.preview_handle is None:
            raise HTTPException(status_code=404, detail="Preview released")

        return Response(content=item.file.content, media_type=item.content_type)

    @app.delete("/api/items")
    async def clear_items(request: Request):
        """Remove every item and release its preview."""
        queue: BatchQueue = request.app.state.queue
        removed = len(queue)
        queue.clear()
        return {"removed": removed, "message": f"Cleared {removed} items"}

    @app.get("/api/stats", response_model=QueueStats)
    async def get_stats(request: Request):
        """Get queue statistics."""
        return QueueStats(**request.app.state.queue.get_stats())

    @app.get("/api/settings", response_model=RenameSettings)
    async def get_settings(request: Request):
        """Get the current rename settings."""
        return request.app.state.rename_settings

    @app.put("/api/settings", response_model=RenameSettings)
    async def update_settings(request: Request, new_settings: RenameSettings):
        """Replace the rename settings."""
        request.app.state.rename_settings = new_settings
        logger.info(
            f"Rename settings: start={new_settings.start_number} pad={new_settings.zero_pad}"
        )
        return new_settings

    @app.get("/api/archive")
    async def download_archive(request: Request):
        """Download every captioned file, renamed, as one zip."""
        queue: BatchQueue = request.app.state.queue
        try:
            data = build_archive(queue.get_items(), request.app.state.rename_settings)
        except EmptyBatchError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ArchiveBuildFailure as e:
            raise HTTPException(status_code=500, detail=str(e))

        headers = {"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'}
        return Response(content=data, media_type="application/zip", headers=headers)

    @app.get("/api/offline-script", response_class=PlainTextResponse)
    async def get_offline_script():
        """Static desktop renaming script for the copy tab."""
        return OFFLINE_SCRIPT

    @app.get("/ui")
    async def serve_frontend():
        """Serve the frontend UI."""
        return FileResponse(FRONTEND_DIR / "index.html")

    return app


app = create_app()


def main():
    """Run the API server."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Caption images and download them renamed")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Port")
    parser.add_argument("--model", default=settings.model, help="Vision model name")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level",
    )

    args = parser.parse_args()
    logging.getLogger().setLevel(args.log_level.upper())

    config = settings.model_copy(update={"model": args.model})
    logger.info(f"Starting server on {args.host}:{args.port} with model '{config.model}'")
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
