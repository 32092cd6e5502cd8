"""Websocket transport and application start request.

The instrument runs one web application per project. It is launched with an
HTTP request on the instrument's launcher, then talks over a websocket that
delivers one gzip-compressed JSON frame per message.
"""

from __future__ import annotations

import httpx
import websockets
from loguru import logger

from pitaya.types import Chunk, CommsError, ConnectionConfig
from pitaya.util import format_error_response


class WebSocketWritable:
    """Outbound side of a `WebSocketDuplex`."""

    def __init__(self, ws):
        self._ws = ws

    async def write(self, data: Chunk) -> None:
        await self._ws.send(data)

    async def abort(self) -> None:
        await self._ws.close()


class WebSocketDuplex:
    """Adapts a `websockets` client connection to the duplex protocol.

    Iterating the connection yields messages until a normal close and raises
    on an abnormal one, which the router reports as a disconnect.
    """

    def __init__(self, ws):
        self.ws = ws
        self.readable = ws
        self.writable = WebSocketWritable(ws)

    @classmethod
    async def open(cls, endpoint: str) -> WebSocketDuplex:
        """Connect to `endpoint` (``ws://host:port``).

        Raises
        ------
        CommsError
            If the websocket cannot be opened.
        """
        logger.info("Opening websocket to {}.", endpoint)
        try:
            ws = await websockets.connect(endpoint, max_size=None)
        except Exception:
            logger.exception("Error during connection.")
            raise CommsError(f"Error during connection: {format_error_response()}")
        logger.info("Websocket connected on {}.", endpoint)
        return cls(ws)


async def start_application(config: ConnectionConfig) -> None:
    """Ask the instrument launcher to start the application `config.uuid`.

    Raises
    ------
    CommsError
        If the launcher cannot be reached or answers with a non-2xx status.
    """
    logger.info("Starting application {} via {}.", config.uuid, config.start_endpoint)
    try:
        async with httpx.AsyncClient(timeout=config.start_timeout) as client:
            response = await client.get(config.start_endpoint)
    except httpx.HTTPError as e:
        logger.exception("Error reaching the application launcher.")
        raise CommsError(f"Unable to reach the application launcher: {e}") from e
    if not response.is_success:
        logger.error(
            "Launcher responded with ({}) {}.",
            response.status_code,
            response.reason_phrase,
        )
        raise CommsError(
            "Unable to start the application, server responded with "
            f"({response.status_code}) {response.reason_phrase}"
        )
    logger.info("Application {} started.", config.uuid)
