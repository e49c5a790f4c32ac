"""
Chat application backend.

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatapp.api.deps import get_identity_config
from chatapp.api.middleware.request_id import RequestIdMiddleware
from chatapp.api.v1 import router as api_v1_router
from chatapp.config import get_settings
from chatapp.database import close_db, init_db
from chatapp.kernel.identity.errors import (
    BadCredentials,
    DuplicateField,
    IdentityError,
    InvalidSignature,
    MalformedToken,
    NotFound,
    TokenExpired,
    TokenRevoked,
)
from chatapp.logging_config import configure_logging, get_logger
from chatapp.schemas.common import ErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)

IDENTITY_ERROR_STATUS = {
    BadCredentials: status.HTTP_401_UNAUTHORIZED,
    InvalidSignature: status.HTTP_401_UNAUTHORIZED,
    TokenExpired: status.HTTP_401_UNAUTHORIZED,
    MalformedToken: status.HTTP_401_UNAUTHORIZED,
    TokenRevoked: status.HTTP_401_UNAUTHORIZED,
    NotFound: status.HTTP_404_NOT_FOUND,
    DuplicateField: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Fails fast on an unusable identity configuration.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    get_identity_config()
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="Chat backend: accounts, sessions, verification, chats and messages.",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _with_request_id(request: Request, content: dict) -> dict:
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        content["request_id"] = req_id
    return content


@app.exception_handler(IdentityError)
async def identity_exception_handler(request: Request, exc: IdentityError):
    """Map typed identity outcomes to HTTP responses."""
    status_code = IDENTITY_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    content = ErrorResponse(
        detail=str(exc),
        code=exc.code,
        field=getattr(exc, "field", None),
    ).model_dump(exclude_none=True)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=_with_request_id(request, content),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=422,
        content=_with_request_id(request, {"detail": "Validation error", "errors": errors}),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__}
    else:
        content = {"detail": "Internal server error"}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_with_request_id(request, content),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(version=settings.version)


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("chatapp.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
