import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.analysis import router as analysis_router
from app.api.v1.symptoms import router as symptoms_router
from app.core.config import get_settings
from app.core.errors import AnalysisError, RateLimited

settings = get_settings()

logger = logging.getLogger(__name__)

GENERIC_ERROR_DETAIL = "Internal server error"

app = FastAPI(
    title="Tissue Insight API",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)


@app.on_event("startup")
async def _startup_checks():
    errors = settings.validate_required_config()
    if not errors:
        return
    if settings.is_production:
        raise RuntimeError(
            "Configuration validation failed in production environment: " + "; ".join(errors)
        )
    for error in errors:
        logger.warning("Configuration problem: %s", error)


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(analysis_router, prefix="/api/v1", tags=["analysis"])
app.include_router(symptoms_router, prefix="/api/v1", tags=["symptoms"])


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}


@app.exception_handler(AnalysisError)
async def _analysis_error_handler(request: Request, exc: AnalysisError):
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after:
        headers = {"Retry-After": str(max(1, int(round(exc.retry_after))))}
    if exc.status_code >= 500:
        logger.error("Error in %s: %s", request.url.path, exc.detail)
        if not settings.expose_error_details:
            # class-level message only; the instance detail may carry upstream bodies
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.default_detail})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": errors})


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx in production unless explicitly enabled.
    if exc.status_code >= 500 and not settings.expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"detail": GENERIC_ERROR_DETAIL})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_DETAIL})
