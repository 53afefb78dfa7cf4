import json
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, WebSocket, WebSocketDisconnect

from lixi_server.dependencies import (
    data_converter,
    get_app_state,
    get_connection_manager,
    get_session_engine,
    to_http_exception,
)
from lixi_server.errors import LixiError
from lixi_server.manager import ConnectionManager
from lixi_server.models.dc_models import (
    EventName,
    JoinRequestModel,
    JoinResponseModel,
    OpenRequestModel,
    OpenResponseModel,
    StatusModel,
)
from lixi_server.services.session_engine import SessionEngine

game_router = APIRouter(prefix="/api/game")
ws_router = APIRouter()


class GameAPI:
    @staticmethod
    @game_router.get("/status", response_model=StatusModel)
    async def get_status(engine: SessionEngine = Depends(get_session_engine)):
        try:
            state = await engine.snapshot()
        except LixiError as e:
            raise to_http_exception(e)
        return data_converter.convert_session_to_status(state)

    @staticmethod
    @game_router.post("/join", response_model=JoinResponseModel)
    async def join(
        body: Any = Body(default=None),
        engine: SessionEngine = Depends(get_session_engine),
        manager: ConnectionManager = Depends(get_connection_manager),
    ):
        """Join the session

        Args:
            body (Any): JSON object with playerName and playerId
        """
        join_data = JoinRequestModel.from_body(body)
        try:
            result = await engine.join(join_data.player_id, join_data.player_name)
        except LixiError as e:
            logging.info(f"Join rejected: {e.kind.value}")
            raise to_http_exception(e)

        await manager.publish(result.events)
        message = (
            "Player already joined" if result.already_joined else "Player joined successfully"
        )
        return JoinResponseModel(
            message=message,
            already_joined=result.already_joined,
            current_players=result.current_players,
        )

    @staticmethod
    @game_router.post("/open", response_model=OpenResponseModel)
    async def open_envelope(
        body: Any = Body(default=None),
        engine: SessionEngine = Depends(get_session_engine),
        manager: ConnectionManager = Depends(get_connection_manager),
    ):
        """Open one envelope for the player

        Args:
            body (Any): JSON object with playerId and playerName
        """
        open_data = OpenRequestModel.from_body(body)
        try:
            result = await engine.open_envelope(open_data.player_id, open_data.player_name)
        except LixiError as e:
            logging.info(f"Open rejected: {e.kind.value}")
            raise to_http_exception(e)

        await manager.publish(result.events)
        return OpenResponseModel(
            amount=result.amount,
            remaining_money=result.remaining_money,
            remaining_envelopes=result.remaining_envelopes,
            is_game_finished=result.is_game_finished,
        )


class GameSocket:
    @staticmethod
    @ws_router.websocket("/ws")
    async def subscribe(websocket: WebSocket):
        """Live updates; a client may ask for the current status at any time"""
        app_state = get_app_state(websocket)
        manager: ConnectionManager = app_state.connection_manager
        engine: SessionEngine = app_state.session_engine

        await manager.connect(websocket)
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except (json.JSONDecodeError, KeyError):
                    # KeyError: binary frame without text
                    logging.warning("Ignoring malformed websocket frame")
                    continue

                if not isinstance(message, dict):
                    continue
                if message.get("event") != EventName.request_game_status.value:
                    logging.debug(f"Ignoring websocket event: {message.get('event')}")
                    continue

                try:
                    state = await engine.snapshot()
                except LixiError as e:
                    logging.error(f"Unable to load game status: {e}")
                    continue
                await manager.send_personal_message(
                    data_converter.convert_session_to_game_status(state), websocket
                )
        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(websocket)
