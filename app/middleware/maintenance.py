from fastapi import Request
from typing import Optional
from app.core.bounce import BounceContext, PageContext
from app.core.config import settings
from app.core.security import get_user_from_token
from app.database import SessionLocal
from app import models


def is_ajax_request(request: Request) -> bool:
    """ajax, popup and plain api calls all get a structured error instead of a redirect"""
    if request.headers.get("X-Requested-With", "").lower() == "xmlhttprequest":
        return True
    if request.query_params.get("popup") in ("1", "true"):
        return True
    accept = request.headers.get("Accept", "")
    return "text/html" not in accept


def get_home_url(request: Request) -> Optional[str]:
    courseid = request.query_params.get("courseid")
    if courseid and courseid.isdigit():
        return f"{settings.WWWROOT.rstrip('/')}/course/view.php?id={courseid}"
    return None


def get_request_user(request: Request) -> Optional[models.User]:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token = auth_header.split(" ")[1]
    db = SessionLocal()
    try:
        return get_user_from_token(db, token)
    finally:
        db.close()


def build_page_context(request: Request) -> PageContext:
    user = get_request_user(request)
    bounce = BounceContext(
        referer=request.headers.get("Referer", ""),
        target=str(request.url),
        wwwroot=settings.WWWROOT,
        is_ajax=is_ajax_request(request),
        is_cli=False,
        is_web=True,
        is_site_admin=bool(user and user.is_superuser),
        home_url=get_home_url(request),
    )
    return PageContext(bounce=bounce)


def cli_page_context() -> PageContext:
    return PageContext(bounce=BounceContext(wwwroot=settings.WWWROOT, is_cli=True, is_web=False))


async def maintenance_context_middleware(request: Request, call_next):
    """Capture the maintenance bounce context once per request"""

    #health check never talks to opencast
    if request.url.path == "/health":
        return await call_next(request)

    request.state.page = build_page_context(request)
    return await call_next(request)
