"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from src.api.routes import api_keys, bootstrap, metrics
from src.core.config import get_settings
from src.core.database import close_db, init_db
from src.core.errors import InternalError, KeyringError, ValidationError
from src.core.structured_logging import configure_logging, log_json

settings = get_settings()
logger = logging.getLogger(__name__)

docs_enabled = settings.api_docs_enabled
if docs_enabled is None:
    docs_enabled = settings.environment != "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    if settings.auto_create_tables:
        await init_db()
    log_json(logger, logging.INFO, "startup", environment=settings.environment, port=settings.port)
    yield
    log_json(logger, logging.INFO, "shutdown")
    await close_db()


app = FastAPI(
    title="Keyring API",
    description="Issue, validate and manage API keys",
    version="1.0.0",
    docs_url="/api/docs" if docs_enabled else None,
    redoc_url="/api/redoc" if docs_enabled else None,
    openapi_url="/api/openapi.json" if docs_enabled else None,
    lifespan=lifespan,
)

# Middleware configuration (order matters - applied in reverse order)
# 1. Request logging (outermost - logs all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


def _error_response(request: Request, exc: KeyringError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(request_id))


@app.exception_handler(KeyringError)
async def keyring_error_handler(request: Request, exc: KeyringError) -> JSONResponse:
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body/query validation failures are client errors (400)."""
    error = ValidationError("Request validation failed", details=jsonable_encoder(exc.errors()))
    return _error_response(request, error)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log_json(
        logger,
        logging.ERROR,
        "db.error",
        path=request.url.path,
        exception=exc.__class__.__name__,
        error=str(exc),
    )
    return _error_response(request, InternalError("Database error"))


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "time": datetime.now(UTC).isoformat()}


app.include_router(bootstrap.router, prefix="/api", tags=["bootstrap"])
app.include_router(api_keys.router, prefix="/api/keys", tags=["api-keys"])
app.include_router(metrics.router, prefix="/api", tags=["metrics"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=settings.host, port=settings.port)
