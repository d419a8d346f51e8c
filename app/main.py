from fastapi import FastAPI, APIRouter, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, HTMLResponse, RedirectResponse
from contextlib import asynccontextmanager
import logging

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.core.config import settings
from app.core.exceptions import (
    AccessDeniedError,
    MaintenanceCloseWindow,
    MaintenanceError,
    MaintenanceRedirect,
    OpencastApiHttpError,
)
from .middleware.maintenance import maintenance_context_middleware
from .routers import maintenance, opencast
from .core.scheduler import init_scheduler, start_scheduler, shutdown_scheduler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

CLOSE_WINDOW_HTML = """<!DOCTYPE html>
<html><head><title>Maintenance</title></head>
<body><p>{message}</p><script>window.close();</script></body></html>"""

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_scheduler()
    start_scheduler()
    yield
    shutdown_scheduler()

app = FastAPI(
    lifespan=lifespan,
    title="Opencast Maintenance Gate",
    version="1.0.0",
)

#security headers
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

#CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "X-Requested-With",
        "Accept",
        "Origin"
    ],
)

#trusted hosts
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS,
)

#rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

#maintenance bounce context, captured once per request
app.middleware("http")(maintenance_context_middleware)

api_router = APIRouter(prefix=settings.API_V1_STR)

api_router.include_router(maintenance.router)
api_router.include_router(opencast.router)

app.include_router(api_router)

@app.get("/", include_in_schema=False)
def read_root():
    return {"message": "OK"}

@app.get("/health", tags=["health"])
def health_check():
    return {
        "status": "healthy",
        "project_name": settings.PROJECT_NAME,
        "version": "1.0.0",
    }

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests"}
    )

@app.exception_handler(MaintenanceRedirect)
async def maintenance_redirect_handler(request: Request, exc: MaintenanceRedirect):
    return RedirectResponse(url=exc.url, status_code=status.HTTP_303_SEE_OTHER)

@app.exception_handler(MaintenanceCloseWindow)
async def maintenance_close_window_handler(request: Request, exc: MaintenanceCloseWindow):
    return HTMLResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=CLOSE_WINDOW_HTML.format(message=exc.message),
    )

@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={
            "detail": exc.message,
            "errorcode": exc.message_key,
            "status": "maintenance",
        },
    )

@app.exception_handler(MaintenanceError)
async def maintenance_error_handler(request: Request, exc: MaintenanceError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": exc.message,
            "errorcode": exc.message_key,
            "status": "maintenance",
        },
    )

@app.exception_handler(OpencastApiHttpError)
async def opencast_error_handler(request: Request, exc: OpencastApiHttpError):
    logger.warning(f"Opencast request failed with {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.message, "opencast_status": exc.status_code},
    )
