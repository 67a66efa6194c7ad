import logging
import random
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.routes import router
from life_sim.config import Settings
from life_sim.engine import Game
from life_sim.llm import LLM
from life_sim.narrator import Narrator
from life_sim.storage import SessionNotFound, SessionStore, StorageError

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)


async def _session_not_found(request: Request, exc: SessionNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Session not found"})


async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Settings | None = None,
    *,
    store: SessionStore | None = None,
    llm: LLM | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """Build the app with an explicitly constructed store and narrator.

    The store is opened when the app starts and closed at shutdown.
    """
    settings = settings or Settings.from_env()
    store = store or SessionStore(settings.data_dir)
    narrator = Narrator(llm or settings.build_llm(), timeout=settings.llm_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="Life Sim", lifespan=lifespan)
    app.state.game = Game(store, narrator, rng=rng)
    app.include_router(router)
    app.add_exception_handler(SessionNotFound, _session_not_found)
    app.add_exception_handler(StorageError, _storage_error)
    app.add_exception_handler(Exception, _unexpected_error)
    return app


# Default app instance for uvicorn (uses env settings; storage opens on startup)
app = create_app()
