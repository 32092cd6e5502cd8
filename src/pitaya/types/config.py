"""Connection configuration."""

from dataclasses import dataclass

from mashumaro import DataClassDictMixin

from pitaya.util.defaults import (
    DEFAULT_HOST_ADDR,
    DEFAULT_HTTP_PORT,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_TIMEOUT,
    DEFAULT_WS_PORT,
)


@dataclass(kw_only=True)
class ConnectionConfig(DataClassDictMixin):
    """Everything needed to reach one instrument application.

    Passed explicitly to `pitaya.connect` and to `Redpitaya`; there is no
    process-wide configuration.

    Attributes
    ----------
    uuid : str
        Id of the instrument-side application to start. Only used by the
        start request.
    host : str
        Instrument address.
    http_port : int
        Port of the application launcher (start request).
    ws_port : int
        Port of the application websocket.
    query : str
        Extra query string forwarded to the launcher.
    queue_size : int
        Frames buffered per subscriber before the oldest is dropped.
    compress_outbound : bool
        Gzip outgoing frames. The instrument expects plain JSON text by default.
    start_timeout : float
        Timeout (s) of the start request.
    """

    uuid: str = ""
    host: str = DEFAULT_HOST_ADDR
    http_port: int = DEFAULT_HTTP_PORT
    ws_port: int = DEFAULT_WS_PORT
    query: str = ""
    queue_size: int = DEFAULT_QUEUE_SIZE
    compress_outbound: bool = False
    start_timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")

    @property
    def start_endpoint(self) -> str:
        return f"http://{self.host}:{self.http_port}/bazaar?start={self.uuid}?{self.query}"

    @property
    def ws_endpoint(self) -> str:
        return f"ws://{self.host}:{self.ws_port}"
