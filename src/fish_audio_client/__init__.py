"""
Client for the Fish Audio speech service.

``Session`` and ``AsyncSession`` cover the request/response endpoints
(synthesis, recognition, voice models, wallet). ``AsyncWebSocketSession``
streams text in and audio out over one live connection.
"""
from .client import AsyncSession, Session
from .codecs import JSON, MSGPACK, Codec, JSONCodec, MsgPackCodec
from .config import DEFAULT_BASE_URL, DEFAULT_DEVELOPER_ID, DEFAULT_WS_BASE_URL, ClientConfig
from .exceptions import (
    AuthenticationError,
    ClientClosedError,
    ConnectionLostError,
    DecodeError,
    ErrorKind,
    FishAudioError,
    HttpCodeError,
    StatusError,
    NotFoundError,
    PaymentRequiredError,
    SessionClosedError,
    WebSocketError,
)
from .schemas import (
    APICreditEntity,
    ASRRequest,
    ASRResponse,
    ASRSegment,
    ModelCreateParams,
    ModelEntity,
    ModelUpdateParams,
    PackageEntity,
    PaginatedResponse,
    Prosody,
    TTSRequest,
)
from .websocket import AsyncWebSocketSession, StreamState, TTSStream

__all__ = [
    "APICreditEntity",
    "ASRRequest",
    "ASRResponse",
    "ASRSegment",
    "AsyncSession",
    "AsyncWebSocketSession",
    "AuthenticationError",
    "ClientClosedError",
    "ClientConfig",
    "Codec",
    "ConnectionLostError",
    "DEFAULT_BASE_URL",
    "DEFAULT_DEVELOPER_ID",
    "DEFAULT_WS_BASE_URL",
    "DecodeError",
    "ErrorKind",
    "FishAudioError",
    "HttpCodeError",
    "JSON",
    "JSONCodec",
    "MSGPACK",
    "ModelCreateParams",
    "ModelEntity",
    "ModelUpdateParams",
    "MsgPackCodec",
    "NotFoundError",
    "PackageEntity",
    "PaginatedResponse",
    "PaymentRequiredError",
    "Prosody",
    "SessionClosedError",
    "StatusError",
    "StreamState",
    "TTSRequest",
    "TTSStream",
    "WebSocketError",
]
