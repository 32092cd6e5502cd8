# -*- coding: utf-8 -*-
"""
Channel router: many virtual channels over one duplex connection.

The router owns the duplex. A single producer task decodes inbound frames once
and pushes each payload into the bounded queue of every subscriber of that
(namespace, key) pair, then yields so waiting subscribers drain before the next
frame. A full queue drops its oldest payload rather than blocking the
producer, so one stalled subscriber never stalls the others; the first drop
is logged as a warning and reported through `error`.

Event listeners are scheduled on the loop, never run inside the producer.

Writes from every subscriber go through one gate (an `asyncio.Lock`), so a
send always completes before the next one starts.

Lifecycle
---------
- `start()` launches the producer task and fires the `connect` event. Every
  operation starts the router lazily.
- When the inbound stream ends or fails, `disconnect` fires with the cause and
  every continuous read ends. The router is then *ended*: single-shot reads
  and writes fail with `NoDataError` (also reported through `error`).
- `close(cause)` is terminal. The first cause wins, `disconnect` fires with
  it, outstanding iterators end, the writer is aborted, and every later call
  raises `ConnectionClosedError` carrying the cause.

Examples
--------
```python
router = ChannelRouter(duplex)
led = router.subscribe("parameters", "digital_led_0")
await led.write(ParameterPayload(value=True))
async for payload in router.read_iter("signals", "adc_1"):
    print(payload.value)
```
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from loguru import logger

from pitaya.types import (
    EVENT_TYPES,
    CommsError,
    ConfigKey,
    ConfigName,
    ConnectionClosedError,
    DuplexProtocol,
    Event,
    Frame,
    Namespace,
    NoDataError,
    Payload,
    StreamEndedError,
)
from pitaya.util import DEFAULT_CLOSE_CAUSE, DEFAULT_QUEUE_SIZE

from .codec import FrameCodec

Listener = Callable[[Event], Union[None, Awaitable[None]]]
Writer = Callable[[Payload], Awaitable[None]]

_END = object()  # end-of-stream marker pushed into subscriber queues


class _Tap:
    """One subscriber's bounded view of the inbound stream.

    `on_drop(tap)` is called whenever a full queue loses its oldest payload.
    The end marker never takes a payload's place: a finished tap hands out
    what it still holds, then `_END`.
    """

    def __init__(
        self,
        namespace: Namespace,
        key: str,
        maxsize: int,
        on_drop: Optional[Callable[[_Tap], None]] = None,
    ):
        self.namespace = namespace
        self.key = key
        self.queue: asyncio.Queue = asyncio.Queue(maxsize)
        self.dropped = 0
        self.finished = False
        self._on_drop = on_drop

    def push(self, item) -> None:
        if self.finished:
            return
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
            if self._on_drop is not None:
                self._on_drop(self)
        self.queue.put_nowait(item)

    def finish(self) -> None:
        if self.finished:
            return
        self.finished = True
        # a full queue is never awaited on, get() returns _END once it drains
        if not self.queue.full():
            self.queue.put_nowait(_END)

    async def get(self):
        if self.finished and self.queue.empty():
            return _END
        return await self.queue.get()


@dataclass(frozen=True)
class Subscription:
    """A (namespace, key) scoped view of a router.

    Owned by one typed endpoint. `get_config`/`set_config` address the
    endpoint's `<key>#<name>` parameters.
    """

    router: ChannelRouter
    namespace: Namespace
    key: str

    async def read(self) -> Payload:
        return await self.router.read(self.namespace, self.key)

    async def write(self, payload: Payload) -> None:
        await self.router.write(self.namespace, self.key, payload)

    def read_iter(self) -> AsyncIterator[Payload]:
        return self.router.read_iter(self.namespace, self.key)

    def write_iter(self) -> AsyncIterator[Writer]:
        return self.router.write_iter(self.namespace, self.key)

    async def get_config(self, name: ConfigName | str) -> Payload:
        return await self.router.get_config(self.key, name)

    async def set_config(self, name: ConfigName | str, payload: Payload) -> None:
        await self.router.set_config(self.key, name, payload)


class ChannelRouter:
    """Multiplexer owning one duplex connection.

    Parameters
    ----------
    duplex : DuplexProtocol
        The connected byte stream pair.
    codec : FrameCodec, optional
        Frame codec, by default a gzip/JSON `FrameCodec`.
    queue_size : int, optional
        Payloads buffered per subscriber, by default DEFAULT_QUEUE_SIZE.
    """

    def __init__(
        self,
        duplex: DuplexProtocol,
        codec: Optional[FrameCodec] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self._duplex = duplex
        self._codec = codec if codec is not None else FrameCodec()
        self._queue_size = queue_size
        self._taps: dict[tuple[Namespace, str], list[_Tap]] = defaultdict(list)
        self._listeners: dict[str, list[Listener]] = {t: [] for t in EVENT_TYPES}
        self._callback_tasks: set[asyncio.Task] = set()
        self._write_gate = asyncio.Lock()
        self._pump_task: Optional[asyncio.Task] = None
        self._closed = False
        self._close_cause: Optional[str] = None
        self._ended = False
        self._end_cause: Optional[BaseException] = None

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """True once `close` has been called."""
        return self._closed

    @property
    def close_cause(self) -> Optional[str]:
        return self._close_cause

    @property
    def ended(self) -> bool:
        """True once the inbound stream has ended or failed."""
        return self._ended

    @property
    def end_cause(self) -> Optional[BaseException]:
        return self._end_cause

    @property
    def started(self) -> bool:
        return self._pump_task is not None

    def subscriber_count(
        self, namespace: Namespace | str | None = None, key: str | None = None
    ) -> int:
        """Number of live subscriber views, optionally for one pair."""
        if namespace is None:
            return sum(len(taps) for taps in self._taps.values())
        return len(self._taps.get((Namespace(namespace), str(key)), ()))

    # ------------------------------------------------------------------
    # events
    # ------------------------------------------------------------------

    def add_event_listener(self, type: str, listener: Listener) -> None:
        """Register a callback for `connect`, `disconnect` or `error`.

        Callbacks receive an `Event`. They are called from the event loop soon
        after the event, not from inside the operation or producer step that
        raised it. They may be plain functions or return an awaitable, which is
        scheduled as a task.
        """
        if type not in self._listeners:
            raise ValueError(f"Unknown event type {type!r}, expected one of {EVENT_TYPES}")
        self._listeners[type].append(listener)

    def remove_event_listener(self, type: str, listener: Listener) -> None:
        if type not in self._listeners:
            raise ValueError(f"Unknown event type {type!r}, expected one of {EVENT_TYPES}")
        try:
            self._listeners[type].remove(listener)
        except ValueError:
            logger.debug("Listener {} was not registered for {}.", listener, type)

    def _emit(self, type: str, detail: Any = None) -> None:
        """Schedule every `type` listener on the loop, in registration order.

        Listeners run after the current step of the caller (usually the
        producer), never inside it.
        """
        event = Event(type, detail)
        logger.debug("*EVENT* {}: {}", type, detail)
        loop = asyncio.get_running_loop()
        for listener in list(self._listeners[type]):
            loop.call_soon(self._call_listener, listener, event)

    def _call_listener(self, listener: Listener, event: Event) -> None:
        try:
            result = listener(event)
        except Exception:
            logger.exception("Error in {} listener {}.", event.type, listener)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._callback_tasks.add(task)
            task.add_done_callback(self._callback_done)

    def _callback_done(self, task: asyncio.Task) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Error in async event listener.")

    # ------------------------------------------------------------------
    # producer
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the producer task and fire `connect`. No-op if started."""
        self._check_open()
        self._ensure_started()

    def _ensure_started(self) -> None:
        if self._pump_task is not None:
            return
        self._pump_task = asyncio.create_task(self._pump(), name="pitaya-router")
        logger.info("Channel router started.")
        self._emit("connect")

    async def _pump(self) -> None:
        try:
            async for frame in self._codec.iter_frames(self._duplex.readable):
                self._dispatch(frame)
                # buffered chunks arrive without suspending: let subscribers drain
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Inbound stream failed.")
            self._end_stream(e)
        else:
            logger.warning("Inbound stream ended.")
            self._end_stream(StreamEndedError("inbound stream ended"))

    def _dispatch(self, frame: Frame) -> None:
        for namespace in Namespace:
            for key, payload in frame.payloads(namespace).items():
                for tap in self._taps.get((namespace, key), ()):
                    tap.push(payload)

    def _end_stream(self, cause: BaseException) -> None:
        if self._ended or self._closed:
            return
        self._ended = True
        self._end_cause = cause
        self._emit("disconnect", cause)
        self._finish_taps()

    def _finish_taps(self) -> None:
        for taps in self._taps.values():
            for tap in taps:
                tap.finish()

    def _open_tap(self, namespace: Namespace, key: str) -> _Tap:
        tap = _Tap(namespace, key, self._queue_size, on_drop=self._dropped)
        self._taps[(namespace, key)].append(tap)
        return tap

    def _dropped(self, tap: _Tap) -> None:
        if tap.dropped > 1:
            logger.trace(
                "Subscriber {{{}: {}}} still not keeping up ({} payloads dropped).",
                tap.namespace.value,
                tap.key,
                tap.dropped,
            )
            return
        msg = (
            f"subscriber {{ {tap.namespace.value}: {tap.key} }} not keeping up, "
            f"dropping oldest payloads (queue size {self._queue_size})"
        )
        logger.warning(msg)
        self._emit("error", msg)

    def _drop_tap(self, tap: _Tap) -> None:
        taps = self._taps.get((tap.namespace, tap.key))
        if taps is None:
            return
        if tap in taps:
            taps.remove(tap)
        if not taps:
            del self._taps[(tap.namespace, tap.key)]

    def _check_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError(
                "Connection was already closed by calling close()",
                cause=self._close_cause,
            )

    def _no_data(self, namespace: Namespace, key: str) -> NoDataError:
        msg = f"no data received for {{ {namespace.value}: {key} }}"
        logger.error(msg)
        self._emit("error", msg)
        return NoDataError(msg)

    # ------------------------------------------------------------------
    # channel operations
    # ------------------------------------------------------------------

    def subscribe(self, namespace: Namespace | str, key: str) -> Subscription:
        """Scoped read/write accessors for one (namespace, key) pair.

        Subscriptions to the same pair are independent; each continuous read
        observes its own copy of the inbound stream.
        """
        return Subscription(self, Namespace(namespace), str(key))

    async def read_iter(
        self, namespace: Namespace | str, key: str
    ) -> AsyncIterator[Payload]:
        """Yield the payload of every following frame carrying `key`.

        Ends when the inbound stream ends or the connection is closed.

        Raises
        ------
        ConnectionClosedError
            If the connection was closed before iteration started.
        """
        namespace = Namespace(namespace)
        key = str(key)
        self._check_open()
        self._ensure_started()
        if self._ended:
            return
        tap = self._open_tap(namespace, key)
        try:
            while True:
                item = await tap.get()
                if item is _END:
                    return
                yield item
        finally:
            self._drop_tap(tap)

    async def read(self, namespace: Namespace | str, key: str) -> Payload:
        """Await the next payload for `key` under `namespace`.

        Raises
        ------
        ConnectionClosedError
            If the connection is, or gets, closed.
        NoDataError
            If the inbound stream ended first. Also reported to `error`
            listeners.
        """
        namespace = Namespace(namespace)
        key = str(key)
        payloads = self.read_iter(namespace, key)
        try:
            async for payload in payloads:
                return payload
        finally:
            await payloads.aclose()
        self._check_open()
        raise self._no_data(namespace, key)

    async def write(
        self, namespace: Namespace | str, key: str, payload: Payload
    ) -> None:
        """Send `{namespace: {key: payload}}`.

        Raises
        ------
        ConnectionClosedError
            If the connection is, or gets, closed while waiting to send.
        NoDataError
            If the stream has already ended. Also reported to `error`
            listeners.
        CommsError
            If the writer fails. Also reported to `disconnect` listeners.
        """
        namespace = Namespace(namespace)
        key = str(key)
        self._check_open()
        self._ensure_started()
        data = self._codec.encode({namespace: {key: payload}})
        async with self._write_gate:
            self._check_open()
            if self._ended:
                raise self._no_data(namespace, key)
            logger.debug("*SEND* (client->): {{{}: {{{}: {}}}}}", namespace.value, key, payload)
            try:
                await self._duplex.writable.write(data)
            except Exception as e:
                logger.exception("Error writing {{{}: {}}}.", namespace.value, key)
                self._end_stream(e)
                raise CommsError(
                    f"Error writing {{ {namespace.value}: {key} }}: {e}"
                ) from e

    async def write_iter(
        self, namespace: Namespace | str, key: str
    ) -> AsyncIterator[Writer]:
        """Yield a writer for `key` for as long as the connection is usable.

        Each call of the yielded `writer(payload)` performs one send. The
        writer gate is awaited before each yield.
        """
        namespace = Namespace(namespace)
        key = str(key)
        self._check_open()
        self._ensure_started()

        async def writer(payload: Payload) -> None:
            await self.write(namespace, key, payload)

        while not (self._closed or self._ended):
            async with self._write_gate:
                pass
            if self._closed or self._ended:
                return
            yield writer

    async def get_config(self, pin: str, name: ConfigName | str) -> Payload:
        """Read the `<pin>#<name>` parameter."""
        return await self.read(Namespace.PARAMETERS, str(ConfigKey(pin, name)))

    async def set_config(self, pin: str, name: ConfigName | str, payload: Payload) -> None:
        """Write the `<pin>#<name>` parameter."""
        await self.write(Namespace.PARAMETERS, str(ConfigKey(pin, name)), payload)

    # ------------------------------------------------------------------
    # teardown
    # ------------------------------------------------------------------

    async def close(self, cause: Optional[str] = None) -> None:
        """Close the connection for good.

        The first call records `cause` (or a default), fires `disconnect` with
        it, stops the producer, ends every outstanding iterator and aborts the
        writer. Later calls do nothing.
        """
        if self._closed:
            logger.debug("Connection already closed, ignoring cause {!r}.", cause)
            return
        self._closed = True
        self._close_cause = cause if cause is not None else DEFAULT_CLOSE_CAUSE
        logger.info("Closing connection: {}", self._close_cause)
        self._emit("disconnect", self._close_cause)
        self._finish_taps()
        if self._pump_task is not None and not self._pump_task.done():
            self._pump_task.cancel()
            await asyncio.gather(self._pump_task, return_exceptions=True)
        try:
            await self._duplex.writable.abort()
        except Exception:
            logger.exception("Error aborting writer.")
