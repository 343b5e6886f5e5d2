from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Protocol

import httpx

from aprovamed.core.config import CheckoutConfig
from aprovamed.core.logging_setup import logger
from aprovamed.services.errors import CheckoutError
from aprovamed.services.plans import Plan

TAX_ID_ALREADY_EXISTS = "CUSTOMER_CPF_CNPJ_ALREADY_EXISTS"


class AsaasError(CheckoutError):
    """Erro de domínio quando a API do Asaas rejeita a chamada ou está indisponível."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, details=details, status_code=status_code)
        self.code = code


class TaxIdAlreadyExistsError(AsaasError):
    """O CPF/CNPJ já pertence a outro cliente do Asaas."""


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    TAX_ID_TAKEN = "tax_id_taken"


class CustomerDirectory(Protocol):
    """Customer operations used while resolving the billing customer."""

    def find_customer_by_tax_id(self, tax_id: str) -> dict[str, Any] | None:
        ...

    def find_customer_by_email(self, email: str) -> dict[str, Any] | None:
        ...

    def update_customer_tax_id(self, customer_id: str, tax_id: str) -> UpdateOutcome:
        ...

    def create_customer(self, *, name: str | None, email: str, tax_id: str) -> str:
        ...


class BillingGateway(CustomerDirectory, Protocol):
    def create_subscription(self, *, customer_id: str, plan: Plan, next_due_date: date) -> dict[str, Any]:
        ...

    def list_subscription_payments(self, subscription_id: str) -> list[dict[str, Any]]:
        ...


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _first_error(response: httpx.Response) -> tuple[str | None, str]:
    """Return (code, description) of the first provider error, or the status text."""
    errors = _json_object(response).get("errors") or []
    if errors and isinstance(errors[0], dict):
        first = errors[0]
        description = first.get("description") or response.reason_phrase
        return first.get("code"), str(description)
    return None, response.reason_phrase or str(response.status_code)


class AsaasClient:
    """Cliente HTTP da API v3 do Asaas."""

    def __init__(self, config: CheckoutConfig, *, http_client: httpx.Client | None = None) -> None:
        self._base_url = config.asaas_base_url
        self._client = http_client or httpx.Client(timeout=config.timeout_seconds)
        self._headers = {
            "access_token": config.asaas_api_key,
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            return self._client.request(method, url, params=params, json=json, headers=self._headers)
        except httpx.RequestError as exc:
            raise AsaasError(f"Falha ao conectar com o Asaas: {exc}") from exc

    def _find_first_customer(self, params: dict[str, str]) -> dict[str, Any] | None:
        response = self._request("GET", "/customers", params=params)
        if response.is_error:
            logger.warning("Busca de cliente no Asaas falhou (%s): %s", response.status_code, list(params))
            return None
        items = _json_object(response).get("data") or []
        return items[0] if items else None

    # ==================================================================
    # Clientes
    # ==================================================================
    def find_customer_by_tax_id(self, tax_id: str) -> dict[str, Any] | None:
        return self._find_first_customer({"cpfCnpj": tax_id})

    def find_customer_by_email(self, email: str) -> dict[str, Any] | None:
        return self._find_first_customer({"email": email})

    def update_customer_tax_id(self, customer_id: str, tax_id: str) -> UpdateOutcome:
        response = self._request("POST", f"/customers/{customer_id}", json={"cpfCnpj": tax_id})
        if not response.is_error:
            return UpdateOutcome.UPDATED
        if response.status_code == 404:
            return UpdateOutcome.NOT_FOUND
        code, description = _first_error(response)
        if code == TAX_ID_ALREADY_EXISTS:
            return UpdateOutcome.TAX_ID_TAKEN
        raise AsaasError(
            f"Erro Asaas (Atualização): {description}",
            code=code,
            details=_json_object(response),
            status_code=response.status_code,
        )

    def create_customer(self, *, name: str | None, email: str, tax_id: str) -> str:
        response = self._request(
            "POST",
            "/customers",
            json={
                "name": name,
                "email": email,
                "cpfCnpj": tax_id,
                "notificationDisabled": False,
            },
        )
        if response.is_error:
            code, description = _first_error(response)
            error_cls = TaxIdAlreadyExistsError if code == TAX_ID_ALREADY_EXISTS else AsaasError
            raise error_cls(
                f"Erro ao criar cliente: {description}",
                code=code,
                details=_json_object(response),
                status_code=response.status_code,
            )
        return response.json()["id"]

    # ==================================================================
    # Assinaturas e cobranças
    # ==================================================================
    def create_subscription(self, *, customer_id: str, plan: Plan, next_due_date: date) -> dict[str, Any]:
        response = self._request(
            "POST",
            "/subscriptions",
            json={
                "customer": customer_id,
                "billingType": "UNDEFINED",
                "value": plan.value,
                "nextDueDate": next_due_date.isoformat(),
                "cycle": plan.cycle,
                "description": plan.description,
            },
        )
        if response.is_error:
            code, description = _first_error(response)
            logger.error("Erro Asaas Subscription: %s", description)
            raise AsaasError(
                f"Erro ao criar assinatura no Asaas: {description}",
                code=code,
                details=_json_object(response),
                status_code=response.status_code,
            )
        return response.json()

    def list_subscription_payments(self, subscription_id: str) -> list[dict[str, Any]]:
        response = self._request("GET", "/payments", params={"subscription": subscription_id})
        if response.is_error:
            logger.warning("Consulta de cobranças da assinatura %s falhou (%s)", subscription_id, response.status_code)
            return []
        return _json_object(response).get("data") or []
