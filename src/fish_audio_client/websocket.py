"""
Live text-to-speech over a websocket.

Text is sent in fragments while audio is received in fragments on the same
connection. Frames are msgpack maps tagged by an ``event`` key:

    client -> server: start (session config), text, flush, stop
    server -> client: audio, finish (reason "stop" or "error"), log
"""
import asyncio
import logging
from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Mapping, Optional, Union

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidStatus,
)

from .codecs import MSGPACK, Codec
from .config import DEFAULT_DEVELOPER_ID, DEFAULT_WS_BASE_URL, ClientConfig
from .exceptions import (
    ConnectionLostError,
    DecodeError,
    SessionClosedError,
    WebSocketError,
    error_for_status,
    extract_detail,
)
from .schemas import TTSRequest

logger = logging.getLogger(__name__)

LIVE_TTS_PATH = "/v1/tts/live"

TextStream = Union[Iterable[str], AsyncIterable[str]]


class StreamState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class TTSStream:
    """Handle for one live synthesis session.

    Owned by the caller that opened it and never reused: once closed it
    stays closed. ``send``/``finish_input`` and ``receive`` may run in
    different tasks at the same time.
    """

    def __init__(self, ws: ClientConnection, codec: Codec = MSGPACK) -> None:
        self._ws = ws
        self._codec = codec
        self._state = StreamState.CONNECTING
        self._input_finished = False
        self._output_finished = False
        self._closed_locally = False

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def input_finished(self) -> bool:
        return self._input_finished

    @property
    def output_finished(self) -> bool:
        return self._output_finished

    async def _send_event(self, event: Mapping[str, Any]) -> None:
        if self._state is not StreamState.OPEN:
            raise SessionClosedError("session is closed")
        try:
            await self._ws.send(self._codec.encode(dict(event)))
        except ConnectionClosedOK as exc:
            self._state = StreamState.CLOSED
            raise SessionClosedError("session was closed by the server") from exc
        except ConnectionClosed as exc:
            if self._closed_locally:
                raise SessionClosedError("session is closed") from exc
            self._state = StreamState.CLOSED
            raise ConnectionLostError(f"connection lost while sending: {exc}") from exc

    async def start(self, request: TTSRequest) -> None:
        """Send the session configuration. Called once by the opener."""
        self._state = StreamState.OPEN
        await self._send_event({"event": "start", "request": request.to_dict()})

    async def send(self, text: str) -> None:
        """Queue a text fragment for synthesis."""
        if self._input_finished:
            raise SessionClosedError("input already finished")
        await self._send_event({"event": "text", "text": text})

    async def flush(self) -> None:
        """Ask the peer to synthesize whatever text it has buffered."""
        if self._input_finished:
            raise SessionClosedError("input already finished")
        await self._send_event({"event": "flush"})

    async def finish_input(self) -> None:
        """Signal that no more text follows. Idempotent, never waits on audio."""
        if self._input_finished or self._state is not StreamState.OPEN:
            return
        self._input_finished = True
        await self._send_event({"event": "stop"})

    async def receive(self) -> AsyncIterator[bytes]:
        """Yield audio chunks in arrival order until the peer ends the stream.

        Raises WebSocketError for an error reported by the peer and
        ConnectionLostError when the connection drops without one.
        """
        while not self._output_finished and self._state is not StreamState.CLOSED:
            try:
                message = await self._ws.recv()
            except ConnectionClosedOK:
                break
            except ConnectionClosedError as exc:
                if self._closed_locally:
                    break
                self._state = StreamState.CLOSED
                raise ConnectionLostError(f"connection lost: {exc}") from exc

            if isinstance(message, str):
                message = message.encode("utf-8")
            event = self._codec.decode(message)
            if not isinstance(event, dict):
                raise DecodeError(f"unexpected frame of type {type(event).__name__}")

            name = event.get("event")
            if name == "audio":
                yield event.get("audio") or b""
            elif name == "finish":
                self._output_finished = True
                if event.get("reason") == "error":
                    raise WebSocketError(extract_detail(event, "stream finished with error"))
            elif name == "error":
                self._output_finished = True
                raise WebSocketError(extract_detail(event, "stream error"))
            elif name == "log":
                logger.debug("server log: %s", event.get("message"))
            else:
                logger.warning("ignoring unknown event %r", name)
        self._output_finished = True

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.receive()

    async def close(self) -> None:
        """Close the connection, discarding unread audio. Idempotent."""
        if self._state in (StreamState.CLOSING, StreamState.CLOSED):
            return
        self._state = StreamState.CLOSING
        self._closed_locally = True
        try:
            await self._ws.close()
        finally:
            self._state = StreamState.CLOSED
            logger.debug("live tts stream closed")

    async def __aenter__(self) -> "TTSStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class AsyncWebSocketSession:
    """Client for live synthesis. Each ``open`` gets its own connection."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_WS_BASE_URL,
        developer_id: str = DEFAULT_DEVELOPER_ID,
        *,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 20.0,
        max_size: Optional[int] = 2 ** 24,
    ) -> None:
        config = ClientConfig(api_key=api_key, base_url=base_url, developer_id=developer_id)
        config.validate()
        self.config = config
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.max_size = max_size

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "AsyncWebSocketSession":
        return cls(config.api_key, config.base_url, config.developer_id, **kwargs)

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}{LIVE_TTS_PATH}"

    async def open(
        self, request: TTSRequest, headers: Optional[Mapping[str, str]] = None
    ) -> TTSStream:
        """Connect and send the session configuration."""
        extra = dict(headers or {})
        extra.update(self.config.auth_headers())
        try:
            ws = await connect(
                self.url,
                additional_headers=extra,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                max_size=self.max_size,
            )
        except InvalidStatus as exc:
            response = exc.response
            body = response.body.decode("utf-8", errors="replace") if response.body else ""
            raise error_for_status(response.status_code, body or response.reason_phrase) from exc
        except (InvalidHandshake, OSError) as exc:
            raise ConnectionLostError(f"could not open live tts stream: {exc}") from exc

        stream = TTSStream(ws)
        logger.debug("live tts stream opened")
        try:
            await stream.start(request)
        except BaseException:
            await stream.close()
            raise
        return stream

    async def tts(
        self,
        request: TTSRequest,
        text_stream: TextStream,
        headers: Optional[Mapping[str, str]] = None,
    ) -> AsyncIterator[bytes]:
        """Send ``text_stream`` while yielding audio; closes the session on exit."""
        stream = await self.open(request, headers)
        sender = asyncio.create_task(_pump_text(stream, text_stream))
        try:
            async for chunk in stream.receive():
                yield chunk
            await sender
        finally:
            if not sender.done():
                sender.cancel()
                await asyncio.gather(sender, return_exceptions=True)
            await stream.close()


async def _pump_text(stream: TTSStream, text_stream: TextStream) -> None:
    try:
        if hasattr(text_stream, "__aiter__"):
            async for text in text_stream:
                await stream.send(text)
        else:
            for text in text_stream:
                await stream.send(text)
        await stream.finish_input()
    except asyncio.CancelledError:
        raise
    except Exception:
        # unblocks the receiving side so the error can surface
        await stream.close()
        raise
