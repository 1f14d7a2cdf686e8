"""FastAPI application for the project migrator."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.sessions import SessionMiddleware

from project_migrator.core.config import settings
from project_migrator.core.exceptions import MigratorError
from project_migrator.core.logging import logger
from project_migrator.core.middleware import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
)
from project_migrator.modules.migrate.routes import router as migrate_router
from project_migrator.modules.oauth.routes import router as oauth_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    logger.info("Starting Project Migrator...", version=settings.VERSION)
    if not settings.oauth_configured:
        logger.warning(
            "OAuth app credentials missing; set SUPA_CONNECT_CLIENT_ID, "
            "SUPA_CONNECT_CLIENT_SECRET and REDIRECT_URL"
        )

    yield

    logger.info("Shutting down Project Migrator...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Preview configuration differences between two Supabase projects before migrating",
    lifespan=lifespan,
)

# Note: allow_credentials=True is incompatible with allow_origins=["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.cors_allows_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Order matters - first added = last executed
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    https_only=settings.SESSION_HTTPS_ONLY,
    same_site="lax",
)
app.add_middleware(RequestLoggingMiddleware)
# Correlation ID (must be first to generate ID for other middleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(oauth_router)
app.include_router(migrate_router)

Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "running",
        "oauth_configured": settings.oauth_configured,
    }


@app.exception_handler(MigratorError)
async def migrator_error_handler(request: Request, exc: MigratorError):
    """Known failures: auth, upstream API, malformed snapshots."""
    logger.warning(
        f"Request failed: {exc.message}",
        path=request.url.path,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.exception(f"Unhandled error: {exc}", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logger.info(f"listening on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
