"""Slides REST client and the DocumentService capability it implements.

Example:
    >>> async with SlidesClient(access_token="ya29...") as client:
    ...     deck = await client.get_presentation("1AbC")
    ...     replies = await client.execute_batch("1AbC", [{"deleteObject": {"objectId": "s1"}}])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx
import orjson

from slidecase.foundation.config import ApiSettings, get_settings
from slidecase.foundation.errors import ErrorCode, JsonDict, ToolException, code_for_status
from slidecase.runtime.observability import get_logger

from .document import Presentation

if TYPE_CHECKING:
    from types import TracebackType

log = get_logger("slides.client")


@runtime_checkable
class DocumentService(Protocol):
    """Capability interface over the remote presentation API."""

    async def get_presentation(self, presentation_id: str) -> Presentation: ...

    async def execute_batch(self, presentation_id: str, requests: list[JsonDict]) -> list[JsonDict]:
        """Apply requests atomically, returning one reply per request."""
        ...


class SlidesAPIError(Exception):
    """Non-2xx reply from the Slides API, with the structured Google status."""

    __slots__ = ("status_code", "message", "reason")

    def __init__(self, status_code: int, message: str, reason: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.reason = reason
        super().__init__(f"{status_code} {reason}: {message}" if reason else f"{status_code}: {message}")

    @property
    def code(self) -> ErrorCode:
        return code_for_status(self.status_code)

    @classmethod
    def from_response(cls, response: httpx.Response) -> SlidesAPIError:
        """Parse a Google API error body ``{"error": {"code", "message", "status"}}``."""
        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            return cls(response.status_code, response.text or response.reason_phrase)
        error = body.get("error", {}) if isinstance(body, dict) else {}
        if not isinstance(error, dict):
            return cls(response.status_code, str(error))
        return cls(
            response.status_code,
            str(error.get("message") or response.reason_phrase),
            str(error.get("status") or ""),
        )


class SlidesClient:
    """httpx-backed DocumentService for ``slides.googleapis.com``.

    The underlying AsyncClient is created lazily unless one is injected.
    """

    __slots__ = ("_settings", "_token", "_client", "_owns_client")

    def __init__(
        self,
        settings: ApiSettings | None = None,
        *,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().api
        secret = self._settings.access_token
        self._token = access_token or (secret.get_secret_value() if secret else None)
        self._client = client
        self._owns_client = client is None

    # ─────────────────────────────────────────────────────────────────
    # HTTP Client
    # ─────────────────────────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx async client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the httpx client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SlidesClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, body: JsonDict | None = None) -> JsonDict:
        url = f"{self._settings.base_url}/{path}"
        headers = self._headers()
        content: bytes | None = None
        if body is not None:
            content = orjson.dumps(body)
            headers["Content-Type"] = "application/json"

        try:
            response = await self._get_client().request(method, url, headers=headers, content=content)
        except httpx.TimeoutException as e:
            raise ToolException.create("slides_api", f"Request timed out after {self._settings.timeout}s",
                                       ErrorCode.TIMEOUT) from e
        except httpx.NetworkError as e:
            raise ToolException.create("slides_api", f"Network error: {e}", ErrorCode.NETWORK_ERROR) from e

        if response.is_error:
            error = SlidesAPIError.from_response(response)
            log.warning("slides api error", method=method, path=path, status=error.status_code, reason=error.reason)
            raise error
        return orjson.loads(response.content) if response.content else {}

    # ─────────────────────────────────────────────────────────────────
    # DocumentService
    # ─────────────────────────────────────────────────────────────────

    async def get_presentation(self, presentation_id: str) -> Presentation:
        data = await self._request("GET", f"presentations/{presentation_id}")
        return Presentation.model_validate(data)

    async def execute_batch(self, presentation_id: str, requests: list[JsonDict]) -> list[JsonDict]:
        log.debug("batch update", presentation_id=presentation_id, requests=len(requests))
        data = await self._request("POST", f"presentations/{presentation_id}:batchUpdate", {"requests": requests})
        replies = data.get("replies", [])
        return replies if isinstance(replies, list) else []
