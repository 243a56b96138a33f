import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from healthnet.config import settings
from healthnet.database import init_db
from healthnet.exceptions import HealthNetError
from healthnet.models.all_models import utc_now
from healthnet.routes.admin.router import router as admin_router
from healthnet.routes.auth.router import router as auth_router
from healthnet.routes.doctor.router import router as doctor_router
from healthnet.routes.facilities.router import router as facilities_router
from healthnet.routes.files.router import router as files_router
from healthnet.routes.notifications.router import router as notifications_router
from healthnet.routes.patient.router import router as patient_router
from healthnet.routes.public.router import router as public_router
from healthnet.routes.qr.router import router as qr_router
from healthnet.utils.file_utils import ensure_upload_dir
from healthnet.utils.responses import error_response

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request."""
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================================
# ERROR HANDLERS
# ================================

@app.exception_handler(HealthNetError)
async def healthnet_error_handler(request: Request, exc: HealthNetError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message, exc.errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return JSONResponse(status_code=exc.status_code, content=error_response(message), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_response("Validation failed", errors))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content=error_response("A record with this value already exists"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(status_code=500, content=error_response(message))

# ================================
# ROUTES
# ================================

@app.get("/", include_in_schema=False)
def read_root():
    return RedirectResponse(url="/docs")


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION, "timestamp": utc_now().isoformat()}


api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(doctor_router)
api_router.include_router(patient_router)
api_router.include_router(qr_router)
api_router.include_router(notifications_router)
api_router.include_router(facilities_router)
api_router.include_router(files_router)
api_router.include_router(public_router)

app.include_router(api_router)

ensure_upload_dir(settings.UPLOAD_DIR)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
