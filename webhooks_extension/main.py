"""Tekton Webhooks Extension API - Main Application"""

import argparse
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from webhooks_extension import __version__
from webhooks_extension.config import settings
from webhooks_extension.routes import credentials, health, webhooks

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    if not settings.installed_namespace:
        raise RuntimeError("INSTALLED_NAMESPACE env value not found")
    logger.info(f"Starting {settings.app_name} in namespace {settings.installed_namespace}...")
    logger.info(f"Webhook callback URL: {settings.webhook_callback_url or '(not set)'}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")


app = FastAPI(
    title=settings.app_name,
    description="Registers Git repository webhooks as Tekton event listener triggers",
    version=__version__,
    lifespan=lifespan
)


# Errors are reported as plain text bodies
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.error(f"{request.method} {request.url.path} failed with {exc.status_code}: {exc.detail}")
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    logger.error(f"{request.method} {request.url.path} bad request: {message}")
    return PlainTextResponse(f"Invalid request body: {message}", status_code=400)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return PlainTextResponse("Internal server error", status_code=500)


app.include_router(credentials.router, prefix="/webhooks/credentials", tags=["Credentials"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(health.router, tags=["Health"])


# Extension web bundle
if settings.web_resources_dir and os.path.isdir(settings.web_resources_dir):
    logger.info(f"Serving web bundle from {settings.web_resources_dir}")
    app.mount("/web", StaticFiles(directory=settings.web_resources_dir), name="web")
else:
    logger.error(f"Web resources directory '{settings.web_resources_dir}' not found, /web/ is disabled")


def main():
    import uvicorn

    parser = argparse.ArgumentParser(
        description="Tekton Webhooks Extension - webhook registration API"
    )
    parser.add_argument("--port", "-p", type=int, default=settings.port)
    parser.add_argument("--host", "-H", default="0.0.0.0")
    args = parser.parse_args()

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
