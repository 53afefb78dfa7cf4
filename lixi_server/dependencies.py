from fastapi import HTTPException, Request, status
from starlette.requests import HTTPConnection

from lixi_server.converter import DataConverter
from lixi_server.errors import LixiError, StateConflictError, ValidationError
from lixi_server.manager import ConnectionManager
from lixi_server.services.session_engine import SessionEngine

data_converter = DataConverter()


def get_session_engine(request: Request) -> SessionEngine:
    return request.app.state.session_engine


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def get_app_state(connection: HTTPConnection):
    """app.state for both HTTP requests and websockets"""
    return connection.app.state


def to_http_exception(error: LixiError) -> HTTPException:
    """Map an engine error to the response the original routes returned"""
    if isinstance(error, (ValidationError, StateConflictError)):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status_code, detail=error.to_detail())
