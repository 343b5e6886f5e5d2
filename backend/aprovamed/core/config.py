from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Configuração obrigatória ausente ou inválida na inicialização."""


class Settings(BaseSettings):
    """
    Configurações globais da API AprovaMed.
    Lê automaticamente variáveis do arquivo .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Projeto
    project_name: str = "AprovaMed API"
    api_v1_str: str = "/api/v1"
    debug: bool = False

    # Banco de dados
    database_url: str = "sqlite:///./dev.db"

    # CORS
    allowed_origins: List[str] = ["*"]

    # Logs
    log_dir: str = "log"

    # Asaas (assinaturas)
    asaas_api_key: Optional[str] = None
    asaas_base_url: str = "https://www.asaas.com/api/v3"
    asaas_timeout_seconds: float = 15.0

    # Consulta da fatura gerada após a assinatura
    checkout_invoice_poll_attempts: int = 1
    checkout_invoice_poll_delay_seconds: float = 1.5
    checkout_invoice_poll_max_delay_seconds: float = 5.0
    checkout_invoice_poll_multiplier: float = 2.0

    # Gemini (extração de questões, comentários e resumos)
    gemini_api_key: Optional[str] = None
    # Vazio usa o endpoint padrão do SDK google-genai
    gemini_base_url: Optional[str] = None
    gemini_model: str = "gemini-3-flash-preview"
    gemini_timeout_seconds: float = 120.0


@dataclass(frozen=True)
class CheckoutConfig:
    asaas_api_key: str
    asaas_base_url: str
    timeout_seconds: float
    poll_attempts: int
    poll_delay_seconds: float
    poll_max_delay_seconds: float
    poll_multiplier: float

    @classmethod
    def from_settings(cls, source: Settings) -> "CheckoutConfig":
        api_key = (source.asaas_api_key or "").strip()
        if not api_key:
            raise ConfigurationError("ASAAS_API_KEY não configurada.")
        base_url = (source.asaas_base_url or "").strip().rstrip("/")
        if not base_url:
            raise ConfigurationError("ASAAS_BASE_URL não configurada.")
        return cls(
            asaas_api_key=api_key,
            asaas_base_url=base_url,
            timeout_seconds=source.asaas_timeout_seconds,
            poll_attempts=source.checkout_invoice_poll_attempts,
            poll_delay_seconds=source.checkout_invoice_poll_delay_seconds,
            poll_max_delay_seconds=source.checkout_invoice_poll_max_delay_seconds,
            poll_multiplier=source.checkout_invoice_poll_multiplier,
        )


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    base_url: str | None
    model: str
    timeout_seconds: float

    @classmethod
    def from_settings(cls, source: Settings) -> "GeminiConfig":
        api_key = (source.gemini_api_key or "").strip()
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY não configurada.")
        return cls(
            api_key=api_key,
            base_url=(source.gemini_base_url or "").strip().rstrip("/") or None,
            model=source.gemini_model,
            timeout_seconds=source.gemini_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Retorna a instância de configurações globais (cacheada)."""
    return Settings()


settings = get_settings()
