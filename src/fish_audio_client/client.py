import logging
from typing import Any, AsyncIterator, Dict, Iterator, Mapping, Optional

import httpx

from .codecs import JSON, MSGPACK, Codec
from .config import DEFAULT_BASE_URL, DEFAULT_DEVELOPER_ID, ClientConfig
from .exceptions import ClientClosedError, ConnectionLostError, classify_response
from .schemas import (
    APICreditEntity,
    ASRRequest,
    ASRResponse,
    FormParts,
    ModelCreateParams,
    ModelEntity,
    ModelUpdateParams,
    PackageEntity,
    PaginatedResponse,
    TTSRequest,
    translate_query,
)

logger = logging.getLogger(__name__)


def _paginated_models(data: Mapping[str, Any]) -> PaginatedResponse[ModelEntity]:
    return PaginatedResponse(
        total=int(data.get("total") or 0),
        items=[ModelEntity.from_dict(item) for item in data.get("items") or []],
    )


def _model_filters(
    page_size: Optional[int],
    page_number: Optional[int],
    title: Optional[str],
    tag: Optional[str],
    self_only: Optional[bool],
    author_id: Optional[str],
    language: Optional[str],
    title_language: Optional[str],
    sort_by: Optional[str],
) -> Dict[str, Any]:
    return {
        "page_size": page_size,
        "page_number": page_number,
        "title": title,
        "tag": tag,
        "self_only": self_only,
        "author_id": author_id,
        "language": language,
        "title_language": title_language,
        "sort_by": sort_by,
    }


class _BaseSession:
    """Request construction shared by the sync and async sessions."""

    def __init__(self, api_key: str, base_url: str, developer_id: str) -> None:
        config = ClientConfig(api_key=api_key, base_url=base_url, developer_id=developer_id)
        config.validate()
        self.config = config

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def _ensure_open(self) -> None:
        if self.closed:
            raise ClientClosedError("client has been closed")

    def _build_request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        codec: Optional[Codec] = JSON,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        files: Optional[FormParts] = None,
        accept: bool = True,
    ) -> httpx.Request:
        self._ensure_open()
        request_headers = httpx.Headers(headers or {})
        content: Optional[bytes] = None
        if body is not None and codec is not None:
            content = codec.encode(body)
            request_headers["Content-Type"] = codec.content_type
        if accept and codec is not None:
            request_headers.setdefault("Accept", codec.content_type)
        # credentials always win over per-call headers
        for name, value in self.config.auth_headers().items():
            request_headers[name] = value
        logger.debug("%s %s", method, path)
        return self._client.build_request(
            method,
            path,
            content=content,
            params=translate_query(query),
            headers=request_headers,
            files=files or None,
        )

    @staticmethod
    def _decode(response: httpx.Response, codec: Optional[Codec]) -> Any:
        if not response.content or codec is None:
            return None
        return codec.decode(response.content)


class Session(_BaseSession):
    """Blocking client for the request/response endpoints.

    One pooled ``httpx.Client`` is shared by every call made through the
    session. Use as a context manager or call ``close()`` when done.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        developer_id: str = DEFAULT_DEVELOPER_ID,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(api_key, base_url, developer_id)
        self._client = httpx.Client(
            base_url=self.config.base_url,
            headers=self.config.auth_headers(),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "Session":
        return cls(config.api_key, config.base_url, config.developer_id, **kwargs)

    def close(self) -> None:
        """Release every pooled connection. Safe to call more than once."""
        if self._client.is_closed:
            return
        self._client.close()
        logger.debug("session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        try:
            response = self._client.send(request, stream=stream)
        except httpx.TransportError as exc:
            self._ensure_open()
            raise ConnectionLostError(f"request failed: {exc}") from exc
        if not response.is_success:
            if stream:
                response.read()
                response.close()
            raise classify_response(response)
        return response

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        codec: Codec = JSON,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Run one request and return the decoded body (``None`` when empty)."""
        request = self._build_request(method, path, body=body, codec=codec, query=query, headers=headers)
        response = self._send(request)
        return self._decode(response, codec)

    def stream(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        codec: Codec = JSON,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Iterator[bytes]:
        """Run one request and yield the response body chunk by chunk.

        Abandoning the iterator releases its connection.
        """
        request = self._build_request(method, path, body=body, codec=codec, headers=headers, accept=False)
        response = self._send(request, stream=True)
        try:
            for chunk in response.iter_bytes():
                if chunk:
                    yield chunk
        except httpx.TransportError as exc:
            self._ensure_open()
            raise ConnectionLostError(f"stream interrupted: {exc}") from exc
        finally:
            response.close()

    def _form(self, method: str, path: str, parts: FormParts) -> Any:
        request = self._build_request(method, path, files=parts)
        return self._decode(self._send(request), JSON)

    def tts(self, request: TTSRequest, headers: Optional[Mapping[str, str]] = None) -> Iterator[bytes]:
        """Synthesize ``request.text`` and yield audio chunks as they arrive."""
        return self.stream("POST", "/v1/tts", body=request.to_dict(), codec=JSON, headers=headers)

    def asr(self, request: ASRRequest) -> ASRResponse:
        data = self.request("POST", "/v1/asr", body=request.to_dict(), codec=MSGPACK)
        return ASRResponse.from_dict(data or {})

    def list_models(
        self,
        *,
        page_size: Optional[int] = None,
        page_number: Optional[int] = None,
        title: Optional[str] = None,
        tag: Optional[str] = None,
        self_only: Optional[bool] = None,
        author_id: Optional[str] = None,
        language: Optional[str] = None,
        title_language: Optional[str] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResponse[ModelEntity]:
        query = _model_filters(
            page_size, page_number, title, tag, self_only, author_id, language, title_language, sort_by
        )
        return _paginated_models(self.request("GET", "/model", query=query) or {})

    def get_model(self, model_id: str) -> ModelEntity:
        return ModelEntity.from_dict(self.request("GET", f"/model/{model_id}") or {})

    def create_model(self, params: ModelCreateParams) -> ModelEntity:
        parts = params.to_multipart()
        return ModelEntity.from_dict(self._form("POST", "/model", parts) or {})

    def update_model(self, model_id: str, params: ModelUpdateParams) -> None:
        parts = params.to_multipart()
        self._form("PATCH", f"/model/{model_id}", parts)

    def delete_model(self, model_id: str) -> None:
        self.request("DELETE", f"/model/{model_id}")

    def get_api_credit(self, *, check_free_credit: Optional[bool] = None) -> APICreditEntity:
        data = self.request("GET", "/wallet/self/api-credit", query={"check_free_credit": check_free_credit})
        return APICreditEntity.from_dict(data or {})

    def get_package(self) -> PackageEntity:
        return PackageEntity.from_dict(self.request("GET", "/wallet/self/package") or {})


class AsyncSession(_BaseSession):
    """Async counterpart of :class:`Session` built on ``httpx.AsyncClient``."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        developer_id: str = DEFAULT_DEVELOPER_ID,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(api_key, base_url, developer_id)
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=self.config.auth_headers(),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "AsyncSession":
        return cls(config.api_key, config.base_url, config.developer_id, **kwargs)

    async def close(self) -> None:
        if self._client.is_closed:
            return
        await self._client.aclose()
        logger.debug("async session closed")

    async def __aenter__(self) -> "AsyncSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.TransportError as exc:
            self._ensure_open()
            raise ConnectionLostError(f"request failed: {exc}") from exc
        if not response.is_success:
            if stream:
                await response.aread()
                await response.aclose()
            raise classify_response(response)
        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        codec: Codec = JSON,
        query: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        request = self._build_request(method, path, body=body, codec=codec, query=query, headers=headers)
        response = await self._send(request)
        return self._decode(response, codec)

    async def stream(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        codec: Codec = JSON,
        headers: Optional[Mapping[str, str]] = None,
    ) -> AsyncIterator[bytes]:
        request = self._build_request(method, path, body=body, codec=codec, headers=headers, accept=False)
        response = await self._send(request, stream=True)
        try:
            async for chunk in response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.TransportError as exc:
            self._ensure_open()
            raise ConnectionLostError(f"stream interrupted: {exc}") from exc
        finally:
            await response.aclose()

    async def _form(self, method: str, path: str, parts: FormParts) -> Any:
        request = self._build_request(method, path, files=parts)
        return self._decode(await self._send(request), JSON)

    def tts(self, request: TTSRequest, headers: Optional[Mapping[str, str]] = None) -> AsyncIterator[bytes]:
        return self.stream("POST", "/v1/tts", body=request.to_dict(), codec=JSON, headers=headers)

    async def asr(self, request: ASRRequest) -> ASRResponse:
        data = await self.request("POST", "/v1/asr", body=request.to_dict(), codec=MSGPACK)
        return ASRResponse.from_dict(data or {})

    async def list_models(
        self,
        *,
        page_size: Optional[int] = None,
        page_number: Optional[int] = None,
        title: Optional[str] = None,
        tag: Optional[str] = None,
        self_only: Optional[bool] = None,
        author_id: Optional[str] = None,
        language: Optional[str] = None,
        title_language: Optional[str] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResponse[ModelEntity]:
        query = _model_filters(
            page_size, page_number, title, tag, self_only, author_id, language, title_language, sort_by
        )
        return _paginated_models(await self.request("GET", "/model", query=query) or {})

    async def get_model(self, model_id: str) -> ModelEntity:
        return ModelEntity.from_dict(await self.request("GET", f"/model/{model_id}") or {})

    async def create_model(self, params: ModelCreateParams) -> ModelEntity:
        parts = params.to_multipart()
        return ModelEntity.from_dict(await self._form("POST", "/model", parts) or {})

    async def update_model(self, model_id: str, params: ModelUpdateParams) -> None:
        parts = params.to_multipart()
        await self._form("PATCH", f"/model/{model_id}", parts)

    async def delete_model(self, model_id: str) -> None:
        await self.request("DELETE", f"/model/{model_id}")

    async def get_api_credit(self, *, check_free_credit: Optional[bool] = None) -> APICreditEntity:
        data = await self.request("GET", "/wallet/self/api-credit", query={"check_free_credit": check_free_credit})
        return APICreditEntity.from_dict(data or {})

    async def get_package(self) -> PackageEntity:
        return PackageEntity.from_dict(await self.request("GET", "/wallet/self/package") or {})
