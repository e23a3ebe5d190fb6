"""
Payload encodings shared by the HTTP and websocket transports.

The encoding of each endpoint is fixed by the service: ``/v1/tts`` speaks
JSON, ``/v1/asr`` and the live synthesis socket speak msgpack.
"""
import json
from typing import Any, Dict, Optional

import msgpack
from msgpack.exceptions import UnpackException

from .exceptions import DecodeError


class Codec:
    """Serializer for one content type."""

    content_type: str = ""

    def encode(self, payload: Any) -> bytes:
        raise NotImplementedError

    def decode(self, data: bytes) -> Any:
        raise NotImplementedError


class JSONCodec(Codec):
    content_type = "application/json"

    def encode(self, payload: Any) -> bytes:
        # bytes values raise TypeError here; binary data belongs in msgpack or multipart
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecodeError(f"malformed JSON payload: {exc}") from exc


class MsgPackCodec(Codec):
    content_type = "application/msgpack"

    def encode(self, payload: Any) -> bytes:
        return msgpack.packb(payload, use_bin_type=True)

    def decode(self, data: bytes) -> Any:
        try:
            return msgpack.unpackb(data, raw=False)
        except (ValueError, TypeError, UnpackException) as exc:
            raise DecodeError(f"malformed msgpack payload: {exc}") from exc


JSON = JSONCodec()
MSGPACK = MsgPackCodec()

_CODECS: Dict[str, Codec] = {
    JSON.content_type: JSON,
    MSGPACK.content_type: MSGPACK,
    "application/x-msgpack": MSGPACK,
}


def codec_for(content_type: Optional[str]) -> Optional[Codec]:
    """Return the codec for a Content-Type header value, ignoring parameters."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return _CODECS.get(media_type)
