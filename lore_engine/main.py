"""lore-engine — FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import FastAPI

from lore_engine.api import chat, memory, play, sessions
from lore_engine.infra.config import settings
from lore_engine.infra.db import init_db
from lore_engine.infra.errors import register_exception_handlers

logger = logging.getLogger("lore-engine")

try:
    __version__ = version("lore-engine")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]
    await init_db()
    logger.info("lore-engine %s started", __version__)
    yield


app = FastAPI(
    title="lore-engine",
    description="LoreEngine — secure LLM game-master proxy and game-state engine",
    version=__version__,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(play.router)
app.include_router(chat.router)
app.include_router(sessions.router)
app.include_router(memory.router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "engine": "lore-engine", "version": __version__}


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
