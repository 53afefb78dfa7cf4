import logging

from fastapi import APIRouter, Depends

from lixi_server.dependencies import (
    data_converter,
    get_connection_manager,
    get_session_engine,
    to_http_exception,
)
from lixi_server.errors import LixiError
from lixi_server.manager import ConnectionManager
from lixi_server.models.dc_models import ResetResponseModel
from lixi_server.services.session_engine import SessionEngine

admin_router = APIRouter(prefix="/api/admin")


class AdminAPI:
    @staticmethod
    @admin_router.post("/reset", response_model=ResetResponseModel)
    async def reset(
        engine: SessionEngine = Depends(get_session_engine),
        manager: ConnectionManager = Depends(get_connection_manager),
    ):
        """Start a new session and return its share URL"""
        try:
            result = await engine.reset()
        except LixiError as e:
            logging.error(f"Reset failed: {e}")
            raise to_http_exception(e)

        await manager.publish(result.events)
        return ResetResponseModel(session_id=result.session_id, share_url=result.share_url)

    @staticmethod
    @admin_router.get("/stats")
    async def stats(engine: SessionEngine = Depends(get_session_engine)) -> dict:
        try:
            state = await engine.snapshot()
        except LixiError as e:
            raise to_http_exception(e)
        return data_converter.convert_session_to_admin_stats(
            state, engine.share_url(state.session_id)
        )
