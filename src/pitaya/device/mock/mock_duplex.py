from __future__ import annotations

import asyncio
import copy
import gzip
from typing import Any, Optional

import simplejson

from pitaya.types import Chunk, CommsError, Frame

_END = object()


def _encode_inbound(frame: Frame | dict) -> bytes:
    data = frame.to_wire() if isinstance(frame, Frame) else frame
    return gzip.compress(simplejson.dumps(data).encode("utf-8"))


def _decode_outbound(chunk: Chunk) -> dict:
    if isinstance(chunk, bytes):
        chunk = gzip.decompress(chunk).decode("utf-8")
    return simplejson.loads(chunk)


class MockWritable:
    """Records every chunk written; can be told to fail."""

    def __init__(self, on_write=None):
        self.sent: list[Chunk] = []
        self.aborted = False
        self.fail_with: Optional[Exception] = None
        self._on_write = on_write

    async def write(self, data: Chunk) -> None:
        if self.aborted:
            raise CommsError("writer was aborted")
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(data)
        if self._on_write is not None:
            self._on_write(data)

    async def abort(self) -> None:
        self.aborted = True


class MockDuplex:
    """Scripted duplex: inbound frames are pushed by the caller.

    Examples
    --------
    ```python
    duplex = MockDuplex()
    router = ChannelRouter(duplex)
    duplex.emit({"parameters": {"digital_led_0": {"value": True}}})
    duplex.end()  # inbound stream ends after queued frames
    ```
    """

    def __init__(self):
        self._inbound: asyncio.Queue = asyncio.Queue()
        self.writable = MockWritable(on_write=self._on_write)
        self.readable = self._read()

    async def _read(self):
        while True:
            item = await self._inbound.get()
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def emit(self, frame: Frame | dict) -> None:
        """Queue one frame (gzip-compressed JSON) on the inbound stream."""
        self._inbound.put_nowait(_encode_inbound(frame))

    def emit_raw(self, chunk: Chunk) -> None:
        self._inbound.put_nowait(chunk)

    def end(self) -> None:
        """End the inbound stream once queued items are consumed."""
        self._inbound.put_nowait(_END)

    def fail(self, exc: Exception) -> None:
        """Make the inbound stream raise `exc` once queued items are consumed."""
        self._inbound.put_nowait(exc)

    @property
    def sent_frames(self) -> list[dict]:
        return [_decode_outbound(chunk) for chunk in self.writable.sent]

    @property
    def last_sent(self) -> Optional[dict]:
        if not self.writable.sent:
            return None
        return _decode_outbound(self.writable.sent[-1])

    def _on_write(self, data: Chunk) -> None:
        pass


class LoopbackDuplex(MockDuplex):
    """Stand-in instrument echoing its state.

    Holds a state frame, re-emits it every `interval` seconds and merges every
    written frame into it, so a value written on a key is read back on that
    key. Items queued with `emit`/`end`/`fail` take priority over the echo.
    """

    def __init__(self, state: Optional[dict[str, Any]] = None, interval: float = 0.001):
        super().__init__()
        state = copy.deepcopy(state) if state else {}
        self.state = {
            "signals": state.get("signals", {}),
            "parameters": state.get("parameters", {}),
        }
        self.interval = interval
        self.readable = self._pull()

    async def _pull(self):
        while True:
            try:
                item = self._inbound.get_nowait()
            except asyncio.QueueEmpty:
                item = _encode_inbound(self.state)
            if item is _END:
                return
            if isinstance(item, Exception):
                raise item
            yield item
            await asyncio.sleep(self.interval)

    def _on_write(self, data: Chunk) -> None:
        message = _decode_outbound(data)
        for namespace in ("signals", "parameters"):
            self.state[namespace].update(message.get(namespace, {}))
