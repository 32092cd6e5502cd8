"""Frame codec: raw chunks <-> `Frame`.

Inbound, each chunk is one gzip member holding one JSON document. Outbound,
the instrument expects plain JSON text unless the codec is built with
`compress_outbound=True`. The stages are plain callables so they can be
swapped (e.g. for a different compression).
"""

from __future__ import annotations

import gzip
from typing import AsyncIterable, AsyncIterator, Callable, Mapping

import simplejson
from loguru import logger

from pitaya.types import (
    Chunk,
    Frame,
    FrameDecodeError,
    Namespace,
    ParameterPayload,
    SignalPayload,
)


class FrameCodec:
    """Stateless transform between wire chunks and frames.

    Parameters
    ----------
    decompress : Callable[[bytes], bytes]
        Applied to inbound bytes chunks, by default gzip.
    compress : Callable[[bytes], bytes]
        Applied to outbound frames when `compress_outbound` is set.
    compress_outbound : bool
        Send gzip bytes instead of JSON text.
    encoding : str
        Text encoding on both directions.
    """

    def __init__(
        self,
        decompress: Callable[[bytes], bytes] = gzip.decompress,
        compress: Callable[[bytes], bytes] = gzip.compress,
        compress_outbound: bool = False,
        encoding: str = "utf-8",
    ):
        self._decompress = decompress
        self._compress = compress
        self.compress_outbound = compress_outbound
        self.encoding = encoding

    # ------------------------------------------------------------------
    # inbound
    # ------------------------------------------------------------------

    def decode(self, chunk: Chunk) -> Frame:
        """Decode one chunk into a frame.

        str chunks (websocket text messages) are taken as already decompressed
        and decoded.

        Raises
        ------
        FrameDecodeError
            On any decompression, text decoding, JSON or schema failure.
        """
        try:
            if isinstance(chunk, str):
                text = chunk
            else:
                text = self._decompress(bytes(chunk)).decode(self.encoding)
            data = simplejson.loads(text)
        except Exception as e:
            raise FrameDecodeError(f"Could not decode chunk: {e}") from e
        if not isinstance(data, dict):
            raise FrameDecodeError(
                f"Frame must be a JSON object, got {type(data).__name__}"
            )
        try:
            return Frame.from_dict(data)
        except Exception as e:
            raise FrameDecodeError(f"Invalid frame: {e}") from e

    async def iter_frames(self, readable: AsyncIterable[Chunk]) -> AsyncIterator[Frame]:
        """Lazily decode every chunk of `readable`.

        One pass per stream: the first decode failure propagates and ends the
        iteration.
        """
        async for chunk in readable:
            frame = self.decode(chunk)
            logger.trace("*FRAME* (client<-): {}", frame)
            yield frame

    # ------------------------------------------------------------------
    # outbound
    # ------------------------------------------------------------------

    def encode(self, message: Frame | Mapping[str, Mapping]) -> Chunk:
        """Encode a frame, or a `{namespace: {key: payload}}` fragment.

        Fragment payloads may be payload dataclasses or plain dicts.
        """
        if isinstance(message, Frame):
            data = message.to_wire()
        else:
            data = {
                Namespace(ns).value: {
                    str(key): _payload_dict(payload) for key, payload in keys.items()
                }
                for ns, keys in message.items()
            }
        text = simplejson.dumps(data, separators=(",", ":"))
        if self.compress_outbound:
            return self._compress(text.encode(self.encoding))
        return text


def _payload_dict(payload) -> dict:
    if isinstance(payload, (SignalPayload, ParameterPayload)):
        return payload.to_dict()
    return dict(payload)
