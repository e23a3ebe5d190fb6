import httpx
import msgpack
import pytest

from fish_audio_client import (
    JSON,
    MSGPACK,
    ClientConfig,
    DecodeError,
    ErrorKind,
    ModelUpdateParams,
    Prosody,
    TTSRequest,
)
from fish_audio_client.codecs import codec_for
from fish_audio_client.exceptions import classify_response
from fish_audio_client.schemas import translate_query


def test_translate_query_maps_pagination_names():
    assert translate_query({"pageSize": 10, "pageNumber": 1}) == {"page_size": 10, "page_number": 1}
    assert translate_query({"page_size": 10, "page_number": 1}) == {"page_size": 10, "page_number": 1}


def test_translate_query_drops_unknown_and_missing_values():
    query = translate_query({"authorId": "a1", "sortBy": None, "verbose": True, "selfOnly": True})
    assert query == {"author_id": "a1"}
    assert translate_query(None) == {}
    assert translate_query({"self_only": False}) == {"self": "false"}


def test_tts_request_defaults_and_prosody():
    payload = TTSRequest(text="hi", prosody=Prosody(speed=1.2, volume=-3)).to_dict()
    assert payload["format"] == "mp3"
    assert payload["chunk_length"] == 200
    assert payload["latency"] == "normal"
    assert payload["prosody"] == {"speed": 1.2, "volume": -3}
    assert "prosody" not in TTSRequest().to_dict()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"format": "flac"},
        {"chunk_length": 50},
        {"mp3_bitrate": 96},
        {"opus_bitrate": 16},
        {"sample_rate": 0},
        {"latency": "instant"},
    ],
)
def test_tts_request_rejects_out_of_range_parameters(kwargs):
    with pytest.raises(ValueError):
        TTSRequest(text="hi", **kwargs)


def test_json_codec_refuses_binary_fields():
    with pytest.raises(TypeError):
        JSON.encode({"audio": b"\x00"})


def test_msgpack_codec_keeps_binary_fields():
    encoded = MSGPACK.encode({"audio": b"\x00\x01", "language": None})
    assert msgpack.unpackb(encoded, raw=False) == {"audio": b"\x00\x01", "language": None}
    assert MSGPACK.decode(encoded)["audio"] == b"\x00\x01"


@pytest.mark.parametrize("codec,data", [(JSON, b"{oops"), (MSGPACK, b"\xc1")])
def test_codecs_raise_decode_error(codec, data):
    with pytest.raises(DecodeError) as exc:
        codec.decode(data)
    assert exc.value.kind is ErrorKind.DECODE
    assert exc.value.status is None


def test_codec_lookup_ignores_parameters():
    assert codec_for("application/json; charset=utf-8") is JSON
    assert codec_for("application/x-msgpack") is MSGPACK
    assert codec_for("audio/mpeg") is None
    assert codec_for(None) is None


def test_classify_response_reads_msgpack_error_body():
    response = httpx.Response(
        402,
        content=msgpack.packb({"message": "credit exhausted"}),
        headers={"Content-Type": "application/msgpack"},
    )
    error = classify_response(response)
    assert error.kind is ErrorKind.PAYMENT
    assert error.detail == "credit exhausted"


def test_update_params_only_send_given_fields():
    parts = ModelUpdateParams(visibility="public", tags=["a", "b"]).to_multipart()
    assert parts == [
        ("visibility", (None, "public", None)),
        ("tags", (None, "a", None)),
        ("tags", (None, "b", None)),
    ]


def test_config_hides_api_key(monkeypatch):
    monkeypatch.setenv("FISH_API_KEY", "secret-key")
    monkeypatch.delenv("FISH_BASE_URL", raising=False)
    monkeypatch.setenv("FISH_DEVELOPER_ID", "partner-1")

    config = ClientConfig.from_env()

    assert config.api_key == "secret-key"
    assert config.base_url == "https://api.fish.audio"
    assert config.auth_headers() == {"Authorization": "Bearer secret-key", "developer-id": "partner-1"}
    assert "secret-key" not in repr(config)
    with pytest.raises(ValueError):
        ClientConfig(api_key="").validate()
