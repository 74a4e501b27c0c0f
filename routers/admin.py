from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from logging_config import get_logger
from routers.pages import page_response
from schemas.admin import AdminLoginRequest, AdminLoginResponse
from services.notifier import secrets_match

logger = get_logger(__name__)

admin_router = APIRouter(tags=["admin"])

LOGIN_PAGE = "/admin-login.html"


def has_admin_session(request: Request) -> bool:
    session_id = request.cookies.get(request.app.state.session_cookie_name)
    return request.app.state.sessions.exists(session_id)


@admin_router.post("/admin/login", response_model=AdminLoginResponse)
async def admin_login(credentials: AdminLoginRequest, request: Request):
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Login attempt for user {credentials.username} from {client_host}")

    username_ok = secrets_match(request.app.state.admin_username, credentials.username)
    password_ok = secrets_match(request.app.state.engine.settings.admin_secret, credentials.password)
    if not (username_ok and password_ok):
        logger.warning(f"Admin login failed from {client_host}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    session_id = request.app.state.sessions.create()
    response = JSONResponse(AdminLoginResponse(redirect="/admin").model_dump())
    response.set_cookie(
        request.app.state.session_cookie_name,
        session_id,
        max_age=request.app.state.session_ttl,
        httponly=True,
        secure=request.app.state.session_cookie_secure,
        samesite="lax",
    )
    logger.info(f"Admin login successful from {client_host}")
    return response


@admin_router.get("/admin")
async def admin_page(request: Request):
    if not has_admin_session(request):
        return RedirectResponse(LOGIN_PAGE, status_code=303)
    return page_response(request, "admin.html")


@admin_router.get("/admin/logout")
async def admin_logout(request: Request):
    cookie_name = request.app.state.session_cookie_name
    request.app.state.sessions.delete(request.cookies.get(cookie_name))
    response = RedirectResponse(LOGIN_PAGE, status_code=303)
    response.delete_cookie(cookie_name)
    logger.info("Admin logged out")
    return response


@admin_router.get("/debug-data")
async def debug_data(request: Request):
    if not has_admin_session(request):
        raise HTTPException(status_code=401, detail="Admin session required")
    snapshot = request.app.state.engine.debug_snapshot()
    return snapshot.model_dump(mode="json", by_alias=True)
