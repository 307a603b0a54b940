import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from roster.api.router import api_router
from roster.config import get_settings
from roster.database import create_tables, engine
from roster.errors import InvalidAssertionError, StudentNotFoundError, StudentValidationError
from roster.schemas.student import field_errors

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    warning = settings.validate_security()
    if warning:
        logger.error("Configuration: %s", warning)
    logger.info("Auth mode: %s", settings.get_auth_mode())
    if settings.database_auto_create:
        await create_tables()
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Student roster management behind federated sign-in",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api")


def _validation_response(errors: list[dict]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": errors,
        },
    )


def _invalid_assertion_response(message: str, errors: list[dict] | None = None) -> JSONResponse:
    content: dict = {"detail": f"Invalid identity assertion: {message}"}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


# Global exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = field_errors(exc.errors())
    # Login bodies that fail to parse are rejected assertions
    if request.url.path == request.app.url_path_for("login"):
        return _invalid_assertion_response("request body could not be parsed", errors)
    return _validation_response(errors)


@app.exception_handler(StudentValidationError)
async def student_validation_handler(
    request: Request, exc: StudentValidationError
) -> JSONResponse:
    return _validation_response(exc.errors)


@app.exception_handler(StudentNotFoundError)
async def not_found_handler(request: Request, exc: StudentNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidAssertionError)
async def invalid_assertion_handler(
    request: Request, exc: InvalidAssertionError
) -> JSONResponse:
    return _invalid_assertion_response(str(exc))


@app.exception_handler(SQLAlchemyError)
async def storage_failure_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Storage failure on {request.method} {request.url.path}: {exc}")

    # Writes are not retried
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "A storage error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")

    # Don't expose internal error details in production
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred. Please try again later.",
        },
    )
