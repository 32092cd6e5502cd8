"""Structural types for the duplex byte connection.

The router never knows what carries the bytes. Anything with a `readable`
async iterable of chunks and a `writable` with async `write`/`abort` will do:
the websocket adapter in `pitaya.comms.transport`, or the mocks in
`pitaya.device.mock`.
"""

from __future__ import annotations

from typing import AsyncIterable, Protocol, Union, runtime_checkable

Chunk = Union[bytes, str]


@runtime_checkable
class WritableProtocol(Protocol):
    """Outbound side of a duplex connection."""

    async def write(self, data: Chunk) -> None:
        """Send one encoded frame. Raises on transport failure."""
        ...

    async def abort(self) -> None:
        """Drop the outbound side. Must be safe to call more than once."""
        ...


@runtime_checkable
class DuplexProtocol(Protocol):
    """A connected duplex: one inbound chunk stream, one outbound writer.

    Each inbound chunk holds exactly one encoded frame.
    """

    readable: AsyncIterable[Chunk]
    writable: WritableProtocol
