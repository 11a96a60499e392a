from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import uvicorn
from loguru import logger

from mediafeed.core.config import AppSettings
from mediafeed.core.errors import AuthorizationError, DataIntegrityError, InvalidInputError, NotFoundError
from mediafeed.api import api_router
from mediafeed.db.database import close_engine


def get_app_settings() -> AppSettings:
    try:
        return AppSettings()
    except Exception as e:
        logger.error(f"Error loading settings: {e}")
        raise

def setup_logging(settings: AppSettings):
    logger.add(
        settings.log_file,
        rotation=settings.log_rotation,
        compression=settings.log_compression.value,
        format=settings.log_format,
        level=settings.app_log_level.value.upper(),
    )

def register_exception_handlers(app: FastAPI):
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.info(f"{request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(AuthorizationError)
    async def authorization_handler(request: Request, exc: AuthorizationError):
        logger.warning(f"Forbidden {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(DataIntegrityError)
    async def data_integrity_handler(request: Request, exc: DataIntegrityError):
        logger.error(f"Data integrity violation on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("API starting...")
    yield
    logger.info("API shutting down...")
    await close_engine()

def create_app():
    settings = get_app_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Mixed media feed, engagement and comments API",
        version="1.0.0",
        lifespan=lifespan,
    )
    setup_logging(settings)
    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": f"{settings.app_name} API running"}
    @app.get("/health")
    async def health_check():
        return {"status": "ok"}
    app.include_router(api_router)

    return app

app = create_app()

if __name__ == "__main__":
    settings = get_app_settings()
    uvicorn.run(
        "mediafeed.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_reload,
    )
