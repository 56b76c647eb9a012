"""
Filament Finder - Main FastAPI Application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.api import router as api_router
from app.api.endpoints import catalog
from app.core.config import settings
from app.exceptions import FilamentFinderException
from app.logging_config import setup_logging, get_logger

# Setup structured logging
setup_logging()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting Filament Finder API",
        extra={
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG,
            "catalog": settings.FILAMENT_DATA_PATH,
            "serialize_writes": settings.CATALOG_SERIALIZE_WRITES,
        }
    )
    yield
    logger.info("Shutting down Filament Finder API")


app = FastAPI(
    title="Filament Finder API",
    description="Filament lookup and catalog maintenance for the portfolio demo",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# Exception Handlers
# ===================


@app.exception_handler(FilamentFinderException)
async def filament_finder_exception_handler(request: Request, exc: FilamentFinderException):
    """Handle all custom Filament Finder exceptions."""
    if exc.status_code >= 500:
        # Cause is chained on the exception; never sent to the client
        logger.error(
            f"{exc.error_code} on {request.url.path}: {exc.message}",
            exc_info=exc,
        )
    else:
        logger.warning(
            f"{exc.error_code} - {exc.message}",
            extra={"error_code": exc.error_code, "details": exc.details, "path": request.url.path}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request parsing errors (e.g. malformed JSON) as 400s."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors}
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Request validation failed",
            "code": "VALIDATION_ERROR",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected errors."""
    logger.error(
        f"Unexpected error on {request.url.path}: {str(exc)}",
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred. Please try again later.",
            "code": "INTERNAL_ERROR",
        },
    )


app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(catalog.router, tags=["catalog"])

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Filament Finder API",
        "version": settings.VERSION,
        "status": "online"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development
    )
