"""
alertnotify service
===================
HTTP front end for alert notification template data.
"""
from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .utils.logging_utils import clear_request_context, configure_logging, set_request_context, structured_log

configure_logging(settings.log_level)
logger = logging.getLogger("alertnotify")

_OPEN_PATHS = ("/", "/healthz", "/livez", "/docs", "/redoc", "/openapi.json")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("alertnotify v%s starting up...", settings.app_version)
    logger.info("External URL: %s", settings.external_url or "(none)")
    if settings.template_path_list:
        logger.info("Template paths: %s", settings.template_path_list)
    yield
    logger.info("alertnotify shutdown complete.")


app = FastAPI(
    title="alertnotify",
    version=settings.app_version,
    description=(
        "Alert notification template data.\n\n"
        "Dashboard / panel / silence links · private label stripping · "
        "value decoding · template rendering"
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    api_key = settings.api_key
    if not api_key or request.url.path in _OPEN_PATHS:
        return await call_next(request)
    token = (
        request.headers.get("x-api-key")
        or request.headers.get("authorization", "").removeprefix("Bearer ")
    )
    if token != api_key:
        structured_log(logger, logging.WARNING, "auth_failed", path=request.url.path, method=request.method)
        return JSONResponse({"detail": {"code": "UNAUTHORIZED", "message": "Unauthorized"}}, status_code=401)
    return await call_next(request)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    start = time.monotonic()
    request.state.request_id = request_id
    tokens = set_request_context(request_id=request_id)
    try:
        response = await call_next(request)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        response.headers["x-request-id"] = request_id
        response.headers["x-elapsed-ms"] = str(elapsed_ms)
        structured_log(
            logger, logging.INFO, "http_request",
            method=request.method, path=request.url.path, status_code=response.status_code, elapsed_ms=elapsed_ms
        )
        return response
    finally:
        clear_request_context(tokens)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("request validation failed: path=%s request_id=%s", request.url.path, getattr(request.state, "request_id", "-"))
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "code": "REQUEST_VALIDATION_FAILED",
                "message": "Request validation failed",
                "errors": jsonable_encoder(exc.errors()),
                "request_id": getattr(request.state, "request_id", None),
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled request error: path=%s request_id=%s", request.url.path, getattr(request.state, "request_id", "-"))
    detail = {
        "code": "INTERNAL_SERVER_ERROR",
        "message": "Unhandled server error",
        "request_id": getattr(request.state, "request_id", None),
    }
    if settings.app_env.strip().lower() in {"dev", "development", "local", "test", "testing"} or settings.expose_internal_error_details:
        detail["reason"] = str(exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": detail
        },
    )


from .api.routes import router as api_router
app.include_router(api_router, prefix="/v1")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "system": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"status": "ok", "system": settings.app_name, "version": settings.app_version}


@app.get("/livez", include_in_schema=False)
async def livez():
    return {"status": "alive", "system": settings.app_name, "version": settings.app_version}
