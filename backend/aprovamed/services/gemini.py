from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from google import genai
from google.genai import errors, types

from aprovamed.core.config import GeminiConfig


class GeminiError(RuntimeError):
    """Erro de domínio quando a API do Gemini falha ou responde sem conteúdo."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.status_code = status_code


def clean_json(text: str | None) -> str:
    """Strip the Markdown code fence the model sometimes wraps JSON in."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
        if cleaned.startswith("json"):
            cleaned = cleaned[4:]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
    return cleaned.strip()


def build_genai_client(config: GeminiConfig) -> genai.Client:
    http_options = types.HttpOptions(
        base_url=config.base_url,
        timeout=int(config.timeout_seconds * 1000),
    )
    return genai.Client(api_key=config.api_key, http_options=http_options)


class GeminiClient:
    """Gera texto com o SDK google-genai; ``client`` aceita um substituto com ``models.generate_content``."""

    def __init__(self, config: GeminiConfig, *, client: Any | None = None) -> None:
        self.model = config.model
        self._client = client or build_genai_client(config)

    def generate(
        self,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        json_response: bool = False,
    ) -> str:
        config = None
        if response_schema is not None or json_response:
            config = types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
            )

        try:
            response = self._client.models.generate_content(model=self.model, contents=prompt, config=config)
        except errors.APIError as exc:
            raise GeminiError(
                str(exc.message or exc),
                details=exc.details if isinstance(exc.details, dict) else {},
                status_code=exc.code,
            ) from exc
        except httpx.HTTPError as exc:
            raise GeminiError(f"Falha ao conectar com o Gemini: {exc}") from exc

        return response.text or ""
