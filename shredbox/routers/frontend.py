from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, PlainTextResponse, RedirectResponse

from shredbox.config import Settings
from shredbox.routers.uploads import app_settings

router = APIRouter()


@router.get("/")
def index(settings: Settings = Depends(app_settings)):
    page = settings.webroot / "index.html"
    if not page.is_file():
        return PlainTextResponse("not found", status_code=404)
    return FileResponse(page)


@router.get("/{file}")
def static_file(file: str, settings: Settings = Depends(app_settings)):
    path = settings.webroot / file
    if file.startswith(".") or not path.is_file():
        return RedirectResponse("/", status_code=303)
    return FileResponse(path)
