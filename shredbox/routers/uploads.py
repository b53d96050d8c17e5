import logging
import mimetypes
import os

from fastapi import APIRouter, UploadFile, File, Form, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from sqlalchemy.orm import Session

from shredbox.config import Settings
from shredbox.database import get_db
from shredbox.exceptions import ShredboxError
from shredbox.services.ledger import ExpiryLedger
from shredbox.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter()


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/")
async def upload_file(
    file: UploadFile | None = File(default=None),
    expiry: str | None = Form(default=None),
    length: str | None = Form(default=None),
    settings: Settings = Depends(app_settings),
    db: Session = Depends(get_db),
):
    if file is None:
        raise HTTPException(status_code=400, detail="Missing 'file'")

    try:
        raw_bytes = await file.read(settings.max_upload_bytes + 1)
    finally:
        await file.close()

    service = UploadService(settings, ExpiryLedger(db))
    try:
        stored = service.store(file.filename or "", raw_bytes, expiry=expiry, name_length=length)
    except ShredboxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))

    hosted_url = service.public_url(stored.name)
    return PlainTextResponse(hosted_url, status_code=303, headers={"Location": hosted_url})


@router.get("/uploads/{name}")
def download_file(name: str, settings: Settings = Depends(app_settings)):
    # Dot-files are in-flight uploads or files being shredded.
    if name.startswith(".") or "/" in name or "\\" in name:
        return PlainTextResponse("file not found", status_code=404)
    try:
        fh = open(settings.folder / name, "rb")
    except (FileNotFoundError, IsADirectoryError):
        return PlainTextResponse("file not found", status_code=404)
    size = os.fstat(fh.fileno()).st_size
    media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return StreamingResponse(
        _iter_file(fh), media_type=media_type, headers={"Content-Length": str(size)}
    )


def _iter_file(fh, chunk_size: int = 64 * 1024):
    # Opened before the response starts, so a reap that parks the file
    # afterwards cannot turn a found file into a 500.
    with fh:
        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break
            yield chunk
