from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.mongodb import connect_to_mongo, close_mongo_connection
from app.middleware.tenant_middleware import TenantAccessMiddleware
from app.services.access_pipeline import AccessPipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        await connect_to_mongo()
        app.state.access_pipeline = await AccessPipeline.from_default()
        logger.info("Access pipeline ready for platform domain '%s'", settings.PLATFORM_DOMAIN or "<from host>")
    except Exception as exc:
        logger.error("Error during startup: %s", exc, exc_info=True)
        raise

    yield

    try:
        await close_mongo_connection()
    except Exception as exc:
        logger.error("Error during shutdown: %s", exc, exc_info=True)


def create_app(pipeline: AccessPipeline | None = None, use_lifespan: bool = True) -> FastAPI:
    application = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.VERSION,
        description="Institute resolution and access control for the LMS platform",
        lifespan=lifespan if use_lifespan else None,
    )

    application.add_middleware(TenantAccessMiddleware, pipeline=pipeline)
    application.include_router(api_router, prefix="/api/v1")

    @application.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @application.get("/health")
    async def health():
        return {
            "status": "success",
            "message": "Server is running!",
            "timestamp": datetime.now().isoformat(),
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
