"""Text translation capability backed by Cloud Translation v2."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx
import orjson
from pydantic import BaseModel, ConfigDict, Field

from slidecase.foundation.config import TranslateSettings, get_settings
from slidecase.foundation.errors import ErrorCode, ToolException


class TranslationBatch(BaseModel):
    """Translated texts, aligned one-to-one with the input texts."""

    model_config = ConfigDict(frozen=True)

    texts: list[str] = Field(default_factory=list)
    detected_source_language: str | None = None


@runtime_checkable
class Translator(Protocol):
    async def translate(self, texts: list[str], target: str, source: str | None = None) -> TranslationBatch: ...


class GoogleTranslator:
    """httpx client for ``translation.googleapis.com/language/translate/v2``.

    Authenticates with an API key when configured, otherwise with the bearer
    token passed in.
    """

    __slots__ = ("_settings", "_token", "_client")

    def __init__(
        self,
        settings: TranslateSettings | None = None,
        *,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().translate
        self._token = access_token
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def translate(self, texts: list[str], target: str, source: str | None = None) -> TranslationBatch:
        if not texts:
            return TranslationBatch()

        body: dict[str, object] = {"q": texts, "target": target, "format": "text"}
        if source:
            body["source"] = source
        params: dict[str, str] = {}
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key is not None:
            params["key"] = self._settings.api_key.get_secret_value()
        elif self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._get_client().post(
                self._settings.base_url, params=params, headers=headers, content=orjson.dumps(body),
            )
        except httpx.TimeoutException as e:
            raise ToolException.create("translate_api", "Translation request timed out", ErrorCode.TIMEOUT) from e
        except httpx.NetworkError as e:
            raise ToolException.create("translate_api", f"Network error: {e}", ErrorCode.NETWORK_ERROR) from e

        if response.is_error:
            raise ToolException.create(
                "translate_api", f"Translation failed with status {response.status_code}: {response.text}",
                ErrorCode.TRANSLATE_API_ERROR, recoverable=response.status_code >= 500,
            )

        translations = orjson.loads(response.content).get("data", {}).get("translations", [])
        if len(translations) != len(texts):
            raise ToolException.create(
                "translate_api", f"translation count mismatch: sent {len(texts)}, got {len(translations)}",
                ErrorCode.TRANSLATE_API_ERROR, recoverable=False,
            )
        return TranslationBatch(
            texts=[t.get("translatedText", "") for t in translations],
            detected_source_language=translations[0].get("detectedSourceLanguage"),
        )
