import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hyprism_content.config import settings
from hyprism_content.errors import (
    ContentStoreError,
    IOFailure,
    NotFoundError,
    OperationCancelled,
    RemoteAPIError,
    ValidationFailure,
)
from hyprism_content.routers import api_router


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


_configure_logging()
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[ContentStoreError], int]] = [
    (NotFoundError, 404),
    (ValidationFailure, 422),
    (RemoteAPIError, 502),
    (OperationCancelled, 409),
    (IOFailure, 500),
]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    paths = settings.content_paths()
    logger.info("Application started (worlds=%s, mods=%s)", paths.worlds_dir, paths.mods_dir)
    yield
    logger.info("Shutdown complete")


app = FastAPI(
    title="HyPrism Content Store",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:34115", "wails://wails"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ContentStoreError)
async def content_store_error_handler(_request: Request, exc: ContentStoreError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    body: dict[str, object] = {"detail": str(exc), "kind": type(exc).__name__}
    if isinstance(exc, RemoteAPIError):
        body["upstreamStatus"] = exc.status_code
    return JSONResponse(status_code=status, content=body)


app.include_router(api_router)


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
