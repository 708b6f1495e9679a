# backend/deepl_wrapper/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from deepl_wrapper.api.routers.account import router as account_router
from deepl_wrapper.api.routers.translate import router as translate_router
from deepl_wrapper.core.config import Settings, settings
from deepl_wrapper.core.credentials import build_credential_resolver
from deepl_wrapper.core.log_utils import sanitize_for_log
from deepl_wrapper.core.rate_limit import limiter
from deepl_wrapper.core.request_context import RequestContextMiddleware, current_log_prefix
from deepl_wrapper.exceptions import ServiceError
from deepl_wrapper.schemas.translation import HealthResponse

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def _error_body(error: str, message: str) -> dict[str, str]:
    return {"error": error, "message": message}


# --- Lifespan Management ---
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    app_settings: Settings = app_instance.state.settings
    logger.info(f"Starting up {app_settings.APP_NAME} v{app_settings.APP_VERSION}...")
    logger.info(
        f"Environment: {app_settings.ENVIRONMENT}, credential mode: "
        f"{app_instance.state.credential_resolver.mode}, temp dir: {app_settings.temp_dir}"
    )
    logger.info(
        f"Polling DeepL every {app_settings.POLL_INTERVAL_SECONDS}s, "
        f"at most {app_settings.POLL_MAX_ATTEMPTS} times per document."
    )
    yield
    logger.info(f"Shutting down {app_settings.APP_NAME}...")


# --- Exception Handlers ---
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    log_message = (
        f"{current_log_prefix()}{type(exc).__name__}: Status={exc.status_code}, "
        f"Error='{exc.error}', Message='{sanitize_for_log(exc.message)}' "
        f"for {request.method} {request.url.path}"
    )
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message)
    else:
        logger.warning(log_message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.error, exc.message))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error_details = exc.errors()
    logger.warning(
        f"Request validation error: {request.method} {request.url.path} - "
        f"Errors: {sanitize_for_log(error_details)}"
    )
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in error_details
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request", message or "Request validation failed"),
    )


async def http_exception_handler_custom(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    log_message = f"HTTPException: Status={exc.status_code}, Detail='{exc.detail}' for {request.method} {request.url.path}"
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message)
    else:
        logger.warning(log_message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("Request failed", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded for {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body("Rate limit exceeded", f"Too many requests: {exc.detail}"),
    )


async def generic_exception_handler_custom(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"{current_log_prefix()}Unhandled exception during request: "
        f"{request.method} {request.url.path}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "An unexpected internal server error occurred."),
    )


# --- FastAPI App Initialization ---
def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings

    app_instance = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description=app_settings.APP_DESCRIPTION,
        lifespan=lifespan,
    )
    # Read once here; requests only ever see these through app.state.
    app_instance.state.settings = app_settings
    app_instance.state.credential_resolver = build_credential_resolver(app_settings)

    # --- Rate Limiting Setup ---
    app_instance.state.limiter = limiter
    app_instance.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app_instance.add_middleware(SlowAPIMiddleware)

    # --- Middleware ---
    origins = [str(origin).strip("/") for origin in app_settings.BACKEND_CORS_ORIGINS]
    origins = [origin for origin in origins if origin]
    if origins:
        app_instance.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition", "X-Request-ID", "X-Billed-Characters"],
        )
        logger.info(f"CORS enabled for origins: {origins}")
    else:
        logger.info("CORS disabled (BACKEND_CORS_ORIGINS not configured).")

    # Added last so it wraps everything else.
    app_instance.add_middleware(RequestContextMiddleware)

    # --- Exception Handlers ---
    app_instance.add_exception_handler(ServiceError, service_error_handler)
    app_instance.add_exception_handler(RequestValidationError, validation_exception_handler)
    app_instance.add_exception_handler(StarletteHTTPException, http_exception_handler_custom)
    app_instance.add_exception_handler(Exception, generic_exception_handler_custom)

    # --- Routers ---
    app_instance.include_router(translate_router)
    app_instance.include_router(account_router)

    @app_instance.get(
        "/health",
        tags=["System Health"],
        summary="Basic System Liveness Check",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
    )
    async def health_check_basic_system() -> HealthResponse:
        return HealthResponse(status="ok", message="DeepL Wrapper API is running")

    return app_instance


app = create_app()


# --- Main entry point for Uvicorn direct run ---
if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Uvicorn server directly for {settings.APP_NAME} (local debugging)...")
    uvicorn.run(
        "deepl_wrapper.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        # Translations can keep a request open for the whole polling budget.
        timeout_keep_alive=max(5, int(settings.POLL_INTERVAL_SECONDS * settings.POLL_MAX_ATTEMPTS)),
    )
