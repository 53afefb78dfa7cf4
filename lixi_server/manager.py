import logging
from typing import Iterable, List

from fastapi import WebSocket

from lixi_server.models.dc_models import EventModel


class ConnectionManager:
    """Fans committed events out to every connected websocket.

    Delivery is best effort: a socket that fails to receive is dropped and
    the remaining subscribers still get the event.
    """

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        """Accept a websocket and register it as a subscriber

        Args:
            websocket (WebSocket): Incoming connection
        """
        await websocket.accept()
        self.active_connections.append(websocket)
        logging.info(f"Subscriber connected ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logging.info(
                f"Subscriber disconnected ({len(self.active_connections)} active)"
            )

    async def send_personal_message(self, event: EventModel, websocket: WebSocket):
        await websocket.send_json(event.to_message())

    async def broadcast(self, event: EventModel) -> int:
        """Send one event to every subscriber

        Args:
            event (EventModel): Committed event

        Returns:
            int: Number of subscribers that received the event
        """
        logging.info(
            f"Broadcasting {event.event.value} to {len(self.active_connections)} subscribers"
        )
        delivered = 0
        for connection in list(self.active_connections):
            try:
                await connection.send_json(event.to_message())
                delivered += 1
            except Exception as e:
                logging.warning(f"Dropping subscriber after failed send: {e}")
                self.disconnect(connection)
        return delivered

    async def publish(self, events: Iterable[EventModel]) -> None:
        for event in events:
            await self.broadcast(event)
