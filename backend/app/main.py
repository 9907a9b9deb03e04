"""FastAPI application entrypoint for the connect-N room server."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.runtime as runtime
from app.api.errors import api_error
from app.api.errors import handle_http_exception
from app.api.routers.games import router as games_router
from app.api.routers.rooms import router as rooms_router
from app.rooms.store import PersistenceUnavailableError
from app.ws.routers import router as ws_router

logger = logging.getLogger(__name__)


def startup() -> None:
    runtime.startup()


async def cleanup_loop(interval_seconds: float) -> None:
    """Periodically sweep rooms idle past the inactivity window."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(runtime.room_manager.cleanup_inactive_rooms)
        except PersistenceUnavailableError:
            logger.warning("Inactive room sweep skipped: store unavailable")
        except Exception:
            logger.exception("Inactive room sweep failed")


@asynccontextmanager
async def lifespan(_: FastAPI):
    startup()
    runtime.broadcaster.bind_loop(asyncio.get_running_loop())
    cleanup_task: asyncio.Task[None] | None = None
    interval = runtime.settings.c4_cleanup_interval_seconds
    if interval > 0:
        cleanup_task = asyncio.create_task(cleanup_loop(float(interval)))
    try:
        yield
    finally:
        if cleanup_task is not None:
            cleanup_task.cancel()
            try:
                await cleanup_task
            except asyncio.CancelledError:
                pass
        runtime.broadcaster.bind_loop(None)


app = FastAPI(title="Connect-N Rooms", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in runtime.settings.c4_cors_allow_origins.split(",")],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(rooms_router)
app.include_router(games_router)
app.include_router(ws_router)


@app.exception_handler(HTTPException)
async def handle_http_exception_route(request: Request, exc: HTTPException) -> JSONResponse:
    """Adapter used by FastAPI exception handling."""
    return await handle_http_exception(request, exc)


@app.exception_handler(PersistenceUnavailableError)
async def handle_persistence_unavailable(_: Request, exc: PersistenceUnavailableError) -> JSONResponse:
    logger.error("Store unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content=api_error(code="PERSISTENCE_UNAVAILABLE", message="room store unavailable"),
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "healthy"}


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=runtime.settings.c4_app_host, port=runtime.settings.c4_app_port)


if __name__ == "__main__":
    main()
