from __future__ import annotations

from typing import Any, Dict, Optional


class CheckoutError(RuntimeError):
    """Falha do checkout devolvida ao chamador como ``{"error": message}``."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code


class CheckoutValidationError(CheckoutError):
    """Campo obrigatório ausente ou inválido; nenhuma chamada externa é feita."""


class CustomerResolutionError(CheckoutError):
    """Nenhum cliente do Asaas pôde ser associado ao aluno."""
