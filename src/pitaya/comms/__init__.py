# -*- coding: utf-8 -*-
"""
Communication layer: frame codec, channel router and websocket transport.

bytes -> `FrameCodec` -> `Frame` -> `ChannelRouter` (fan-out by key)
-> `Subscription` -> typed endpoints. Writes flow the other way through the
router's single writer gate.

See Also
--------
pitaya.comms.codec : Frame codec
pitaya.comms.router : Multiplexer core
pitaya.comms.transport : Websocket duplex and start request
"""

from .codec import FrameCodec
from .router import ChannelRouter, Subscription
from .transport import WebSocketDuplex, WebSocketWritable, start_application

__all__ = [
    "ChannelRouter",
    "FrameCodec",
    "Subscription",
    "WebSocketDuplex",
    "WebSocketWritable",
    "start_application",
]
