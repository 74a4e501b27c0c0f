import os

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from logging_config import get_logger

logger = get_logger(__name__)

pages_router = APIRouter(tags=["pages"])


def page_response(request: Request, filename: str) -> FileResponse:
    path = os.path.join(request.app.state.public_dir, filename)
    if not os.path.isfile(path):
        logger.error(f"Page {filename} not found in {request.app.state.public_dir}")
        raise HTTPException(status_code=404, detail="Page not found")
    return FileResponse(path, media_type="text/html")


@pages_router.get("/")
async def index(request: Request):
    return page_response(request, "index.html")


@pages_router.get("/chat")
async def chat(request: Request):
    return page_response(request, "chat.html")


@pages_router.get("/admin-login.html")
async def admin_login_page(request: Request):
    return page_response(request, "admin-login.html")
