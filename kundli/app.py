import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .routers import charts as charts_router
from .routers import dashas as dashas_router
from .routers import strength as strength_router
from .routers import patterns as patterns_router
from .routers import vargas as vargas_router
from .routers import transits as transits_router
from .routers import compatibility as compatibility_router
from .middleware.logging import LoggingMiddleware
from .services.errors import ConfigurationError, DegenerateGeometryError, UnavailableError

logger = logging.getLogger(__name__)

app = FastAPI(title="kundli-engine", version="0.1.0")

# Configure CORS - localhost for development, allow-list for production
app_env = os.getenv("APP_ENV")
is_dev = app_env is None or app_env.lower() in {"dev", "development"}

if is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=86400,
    )
else:
    allowed = [o for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o]
    preview = os.getenv("PREVIEW_ORIGIN")  # e.g. a deploy preview URL
    if preview:
        allowed.append(preview)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=86400,
    )

app.add_middleware(LoggingMiddleware)

app.include_router(charts_router.router)
app.include_router(dashas_router.router)
app.include_router(strength_router.router)
app.include_router(patterns_router.router)
app.include_router(vargas_router.router)
app.include_router(transits_router.router)
app.include_router(compatibility_router.router)


@app.exception_handler(ConfigurationError)
def _configuration_error(request: Request, exc: ConfigurationError):
    return JSONResponse({"error": "invalid_configuration", "detail": str(exc)}, status_code=400)


@app.exception_handler(UnavailableError)
def _unavailable(request: Request, exc: UnavailableError):
    logger.warning("request_unavailable", extra={"path": request.url.path, "reason": exc.reason})
    return JSONResponse({"error": exc.reason, "detail": str(exc)}, status_code=503)


@app.exception_handler(DegenerateGeometryError)
def _degenerate(request: Request, exc: DegenerateGeometryError):
    return JSONResponse({"error": exc.reason, "detail": str(exc)}, status_code=422)


@app.get("/__health")
def health():
    return {"ok": True}


@app.get("/")
def root():
    return {"message": "kundli-engine API is running. See /__health and /docs."}
