"""Opening a connection to an instrument application."""

from __future__ import annotations

from typing import Optional

from loguru import logger

from pitaya.comms import WebSocketDuplex, start_application
from pitaya.device import Redpitaya
from pitaya.types import ConnectionConfig


async def connect(
    config: Optional[ConnectionConfig] = None, start_app: bool = True
) -> Redpitaya:
    """Start the instrument application and connect to it.

    Parameters
    ----------
    config : ConnectionConfig, optional
        Where to connect, by default `ConnectionConfig()` (localhost).
    start_app : bool, optional
        Send the start request to the launcher first, by default True. Set to
        False when the application is already running.

    Returns
    -------
    Redpitaya
        Started facade. Close it with `await redpitaya.close()`.

    Raises
    ------
    CommsError
        If the start request or the websocket connection fails.

    Examples
    --------
    ```python
    config = ConnectionConfig(uuid="my_app", host="rp-f0a235.local")
    redpitaya = await pitaya.connect(config)
    try:
        await redpitaya.pin.digital.led0.write(True)
    finally:
        await redpitaya.close()
    ```
    """
    if config is None:
        config = ConnectionConfig()
    if start_app:
        await start_application(config)
    duplex = await WebSocketDuplex.open(config.ws_endpoint)
    redpitaya = Redpitaya(duplex, config)
    await redpitaya.start()
    logger.info("Connected to {}.", config.ws_endpoint)
    return redpitaya
