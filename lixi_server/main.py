import logging
import random
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from lixi_server import load_settings
from lixi_server.create_sqlite_engine import create_sqlite_engine
from lixi_server.manager import ConnectionManager
from lixi_server.models.dc_models import GameSettings, HealthModel
from lixi_server.routers import admin, game
from lixi_server.services.game_state_db import GameStateStore
from lixi_server.services.session_engine import SessionEngine

logging.basicConfig(level=load_settings.log_level)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def create_app(
    settings: GameSettings | None = None,
    database_url: str | None = None,
    rng: random.Random | None = None,
    allowed_origins: list[str] | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    The session engine and connection manager are built in the lifespan
    and live on app.state; routes receive them through Depends.
    """
    settings = settings or load_settings.game_settings()
    database_url = database_url or load_settings.database_url

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = GameStateStore(create_sqlite_engine(database_url))
        engine = SessionEngine(store, settings, rng=rng)
        state = await engine.initialize()
        app.state.session_engine = engine
        app.state.connection_manager = ConnectionManager()
        logging.info(f"Lucky money server ready, session {state.session_id}")
        logging.info(f"Share URL: {settings.share_url(state.session_id)}")
        try:
            yield
        finally:
            await store.dispose()
            logging.info("Stop Server")

    app = FastAPI(title="Li Xi API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or load_settings.allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(game.game_router)
    app.include_router(game.ws_router)
    app.include_router(admin.admin_router)

    @app.get("/health", response_model=HealthModel)
    async def health():
        engine: SessionEngine = app.state.session_engine
        return HealthModel(phase=await engine.phase())

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=load_settings.host, port=load_settings.port)
