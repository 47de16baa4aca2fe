from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from .config import settings
from .errors import (
    CollisionPolicyRequiredError,
    FileBoxError,
    InvalidFileNameError,
    InvalidTransitionError,
    NotAuthenticatedError,
    PendingItemNotFoundError,
    RecordNotFoundError,
    StorageError,
)
from .logger import logger
from .manager import FileManager
from .routers import auth, files, pending, preferences

_STATUS_CODES: list[tuple[type[FileBoxError], int]] = [
    (RecordNotFoundError, 404),
    (PendingItemNotFoundError, 404),
    (NotAuthenticatedError, 401),
    (InvalidTransitionError, 409),
    (InvalidFileNameError, 400),
    (StorageError, 502),
]


async def handle_file_box_error(request: Request, exc: FileBoxError) -> JSONResponse:
    if isinstance(exc, CollisionPolicyRequiredError):
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "collisions": exc.report.model_dump()},
        )

    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app(file_manager: FileManager | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up FileBox...")
        yield
        active = app.state.file_manager.uploads.active_count
        if active:
            logger.warning(f"Shutting down with {active} upload(s) still in flight")

    app = FastAPI(lifespan=lifespan, title="FileBox")
    app.state.file_manager = file_manager or FileManager.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FileBoxError, handle_file_box_error)  # type: ignore[arg-type]

    for module in (auth, files, pending, preferences):
        app.include_router(module.router, prefix="/api")

    return app


app = create_app()
