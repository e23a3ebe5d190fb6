"""
Value objects exchanged with the speech service.

Requests validate their own parameter ranges on construction; the
transport serializes them with ``to_dict`` and never inspects them further.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

AUDIO_FORMATS = ("wav", "pcm", "mp3", "opus")
MP3_BITRATES = (64, 128, 192)
OPUS_BITRATES = (-1000, 24, 32, 48, 64)
LATENCY_MODES = ("normal", "balanced")

# Caller-side parameter name -> wire name. Names missing here are dropped.
QUERY_WIRE_NAMES: Dict[str, str] = {
    "page_size": "page_size",
    "pageSize": "page_size",
    "page_number": "page_number",
    "pageNumber": "page_number",
    "title": "title",
    "tag": "tag",
    "self_only": "self",
    "self": "self",
    "author_id": "author_id",
    "authorId": "author_id",
    "language": "language",
    "title_language": "title_language",
    "titleLanguage": "title_language",
    "sort_by": "sort_by",
    "sortBy": "sort_by",
    "check_free_credit": "check_free_credit",
    "checkFreeCredit": "check_free_credit",
}


def translate_query(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Map caller parameter names to wire names.

    Unknown names and ``None`` values are dropped.
    """
    query: Dict[str, Any] = {}
    for name, value in (params or {}).items():
        wire_name = QUERY_WIRE_NAMES.get(name)
        if wire_name is None or value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        query[wire_name] = value
    return query


@dataclass(frozen=True)
class Prosody:
    speed: float = 1.0
    volume: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"speed": self.speed, "volume": self.volume}


@dataclass(frozen=True)
class TTSRequest:
    """Synthesis request.

    ``text`` may be empty when the request only configures a live stream.
    """

    text: str = ""
    format: str = "mp3"
    chunk_length: int = 200
    mp3_bitrate: int = 128
    opus_bitrate: int = -1000
    sample_rate: Optional[int] = None
    normalize: bool = True
    latency: str = "normal"
    reference_id: Optional[str] = None
    prosody: Optional[Prosody] = None

    def __post_init__(self) -> None:
        if self.format not in AUDIO_FORMATS:
            raise ValueError(f"format must be one of {AUDIO_FORMATS}, got {self.format!r}")
        if not 100 <= self.chunk_length <= 300:
            raise ValueError("chunk_length must be between 100 and 300")
        if self.mp3_bitrate not in MP3_BITRATES:
            raise ValueError(f"mp3_bitrate must be one of {MP3_BITRATES}")
        if self.opus_bitrate not in OPUS_BITRATES:
            raise ValueError(f"opus_bitrate must be one of {OPUS_BITRATES}")
        if self.sample_rate is not None and self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        if self.latency not in LATENCY_MODES:
            raise ValueError(f"latency must be one of {LATENCY_MODES}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "text": self.text,
            "format": self.format,
            "chunk_length": self.chunk_length,
            "mp3_bitrate": self.mp3_bitrate,
            "opus_bitrate": self.opus_bitrate,
            "sample_rate": self.sample_rate,
            "normalize": self.normalize,
            "latency": self.latency,
            "references": [],
            "reference_id": self.reference_id,
        }
        if self.prosody is not None:
            payload["prosody"] = self.prosody.to_dict()
        return payload


@dataclass(frozen=True)
class ASRRequest:
    audio: bytes
    language: Optional[str] = None
    ignore_timestamps: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audio": self.audio,
            "language": self.language,
            "ignore_timestamps": self.ignore_timestamps,
        }


@dataclass(frozen=True)
class ASRSegment:
    text: str
    start: float
    end: float


@dataclass(frozen=True)
class ASRResponse:
    text: str
    duration: float
    segments: Tuple[ASRSegment, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ASRResponse":
        segments = tuple(
            ASRSegment(
                text=item.get("text", ""),
                start=float(item.get("start", 0.0)),
                end=float(item.get("end", 0.0)),
            )
            for item in data.get("segments") or []
            if isinstance(item, dict)
        )
        return cls(
            text=data.get("text") or "",
            duration=float(data.get("duration") or 0.0),
            segments=segments,
        )


@dataclass
class PaginatedResponse(Generic[T]):
    total: int
    items: List[T]


@dataclass
class ModelEntity:
    id: str
    title: str
    type: Optional[str] = None
    state: Optional[str] = None
    visibility: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelEntity":
        return cls(
            id=data.get("_id") or data.get("id") or "",
            title=data.get("title") or "",
            type=data.get("type"),
            state=data.get("state"),
            visibility=data.get("visibility"),
            description=data.get("description"),
            tags=list(data.get("tags") or []),
            raw=dict(data),
        )


@dataclass
class APICreditEntity:
    credit: float
    user_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "APICreditEntity":
        return cls(
            credit=float(data.get("credit") or 0),
            user_id=data.get("user_id"),
            raw=dict(data),
        )


@dataclass
class PackageEntity:
    type: Optional[str]
    total: int
    balance: int
    user_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackageEntity":
        return cls(
            type=data.get("type"),
            total=int(data.get("total") or 0),
            balance=int(data.get("balance") or 0),
            user_id=data.get("user_id"),
            raw=dict(data),
        )


# Every field travels as a multipart part; text parts have no filename.
FormPart = Tuple[str, Tuple[Optional[str], Union[bytes, str], Optional[str]]]
FormParts = List[FormPart]


def _field(name: str, value: str) -> FormPart:
    return (name, (None, value, None))


def _cover_part(cover_image: bytes) -> FormPart:
    return ("cover_image", ("cover.png", cover_image, "image/png"))


@dataclass(frozen=True)
class ModelCreateParams:
    title: str
    voices: Sequence[bytes]
    visibility: str = "private"
    type: str = "tts"
    description: Optional[str] = None
    train_mode: str = "fast"
    texts: Sequence[str] = ()
    tags: Sequence[str] = ()
    cover_image: Optional[bytes] = None
    enhance_audio_quality: bool = True

    def to_multipart(self) -> FormParts:
        parts: FormParts = [
            ("voices", (f"voice_{i}.wav", voice, "audio/wav")) for i, voice in enumerate(self.voices)
        ]
        if self.cover_image:
            parts.append(_cover_part(self.cover_image))
        parts.append(_field("visibility", self.visibility))
        parts.append(_field("type", self.type))
        parts.append(_field("title", self.title))
        if self.description:
            parts.append(_field("description", self.description))
        parts.append(_field("train_mode", self.train_mode))
        parts.extend(_field("texts", text) for text in self.texts)
        parts.extend(_field("tags", tag) for tag in self.tags)
        parts.append(_field("enhance_audio_quality", "true" if self.enhance_audio_quality else "false"))
        return parts


@dataclass(frozen=True)
class ModelUpdateParams:
    title: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[str] = None
    tags: Sequence[str] = ()
    cover_image: Optional[bytes] = None

    def to_multipart(self) -> FormParts:
        parts: FormParts = []
        if self.cover_image:
            parts.append(_cover_part(self.cover_image))
        if self.title:
            parts.append(_field("title", self.title))
        if self.description:
            parts.append(_field("description", self.description))
        if self.visibility:
            parts.append(_field("visibility", self.visibility))
        parts.extend(_field("tags", tag) for tag in self.tags)
        return parts
