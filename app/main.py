from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from tortoise.contrib.fastapi import RegisterTortoise

from app import settings
from app.exceptions import StorageUnavailableError, ValidationError
from app.routers import admin, booking
from app.storage import UPLOAD_URL_PREFIX

TORTOISE_MODULES = {"models": ["app.models"]}


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with RegisterTortoise(
        app,
        db_url=settings.db_url,
        modules=TORTOISE_MODULES,
        generate_schemas=True,
    ):
        logger.info("Database ready at {}", settings.db_url.split("@")[-1])
        yield


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.message, "fields": exc.fields},
    )


async def _storage_error_handler(
    request: Request, exc: StorageUnavailableError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": exc.message},
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StorageUnavailableError, _storage_error_handler)  # type: ignore[arg-type]


def create_app() -> FastAPI:
    app = FastAPI(title="Vehicle Booking Wizard", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_exception_handlers(app)

    app.include_router(booking.router)
    app.include_router(admin.router)
    app.mount(
        UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "OK"}

    return app


app = create_app()
