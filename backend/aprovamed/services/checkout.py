from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from aprovamed.core.config import CheckoutConfig
from aprovamed.core.logging_setup import logger
from aprovamed.schemas.checkout import CheckoutPayload
from aprovamed.services.asaas import AsaasClient, AsaasError, BillingGateway
from aprovamed.services.customer_resolution import ResolutionRequest, resolve_customer
from aprovamed.services.errors import CheckoutError, CheckoutValidationError
from aprovamed.services.invoice_polling import InvoicePollPolicy
from aprovamed.services.plans import resolve_plan
from aprovamed.services.student import SubscriberStore
from aprovamed.utils.email_validation import normalize_email
from aprovamed.utils.tax_id import is_valid_length, mask_tax_id, normalize_tax_id

MISSING_FIELDS_MESSAGE = "Dados do usuário incompletos (userId, email ou CPF obrigatórios)."
INVALID_TAX_ID_MESSAGE = "CPF ou CNPJ inválido. Informe 11 ou 14 dígitos."
INVOICE_PENDING_MESSAGE = "A cobrança está sendo processada. Aguarde alguns instantes e tente novamente."
INTERNAL_ERROR_MESSAGE = "Erro interno no servidor."


@dataclass(frozen=True)
class CheckoutResult:
    payment_url: str | None = None
    error: str | None = None
    pending: bool = False

    @property
    def ok(self) -> bool:
        return self.payment_url is not None

    def to_response(self) -> dict[str, str]:
        if self.payment_url is not None:
            return {"paymentUrl": self.payment_url}
        return {"error": self.error or INTERNAL_ERROR_MESSAGE}


@dataclass(frozen=True)
class _ValidatedRequest:
    user_id: str
    email: str
    name: str | None
    tax_id: str
    plan_type: str | None


def _tomorrow() -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=1)


class CheckoutService:
    """Creates an Asaas subscription for a student and returns the invoice link.

    ``checkout`` never raises: every failure becomes a ``CheckoutResult`` with
    an error message, so callers branch on the payload and not on the status.
    """

    def __init__(
        self,
        gateway: BillingGateway,
        *,
        poll_policy: InvoicePollPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        next_due_date: Callable[[], date] = _tomorrow,
    ) -> None:
        self.gateway = gateway
        self.poll_policy = poll_policy or InvoicePollPolicy()
        self._sleep = sleep
        self._next_due_date = next_due_date

    def checkout(self, payload: CheckoutPayload, store: SubscriberStore) -> CheckoutResult:
        try:
            return self._checkout(payload, store)
        except CheckoutError as exc:
            logger.error("Erro no checkout: %s", exc.message)
            return CheckoutResult(error=exc.message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Erro fatal no checkout: %s", exc)
            return CheckoutResult(error=str(exc) or INTERNAL_ERROR_MESSAGE)

    def _checkout(self, payload: CheckoutPayload, store: SubscriberStore) -> CheckoutResult:
        request = self._validate(payload)

        plan = resolve_plan(request.plan_type)
        logger.info(
            "Configurando plano: %s | Valor: %.2f | Ciclo: %s",
            request.plan_type or "default(monthly)",
            plan.value,
            plan.cycle,
        )

        cached_id = store.get_customer_id(request.user_id)
        resolved = resolve_customer(
            self.gateway,
            ResolutionRequest(
                tax_id=request.tax_id,
                email=request.email,
                name=request.name,
                cached_customer_id=cached_id,
            ),
        )
        if resolved.customer_id != cached_id:
            store.save_customer_id(request.user_id, resolved.customer_id)
            logger.info("Cliente Asaas %s gravado para o aluno %s", resolved.customer_id, request.user_id)

        subscription = self.gateway.create_subscription(
            customer_id=resolved.customer_id,
            plan=plan,
            next_due_date=self._next_due_date(),
        )
        subscription_id = subscription.get("id") if isinstance(subscription, dict) else None
        if not subscription_id:
            raise AsaasError("Erro ao criar assinatura no Asaas: resposta sem identificador da assinatura.")
        logger.info("Assinatura %s criada (%s) para o cliente %s", subscription_id, plan.cycle, resolved.customer_id)

        return self._await_invoice(subscription_id)

    def _validate(self, payload: CheckoutPayload) -> _ValidatedRequest:
        tax_id = normalize_tax_id(payload.tax_id)
        if not payload.user_id or not payload.email or not tax_id:
            raise CheckoutValidationError(MISSING_FIELDS_MESSAGE)
        if not is_valid_length(tax_id):
            raise CheckoutValidationError(INVALID_TAX_ID_MESSAGE)
        email = payload.email.strip()
        try:
            # Só valida a sintaxe; o Asaas recebe o e-mail como foi informado
            normalize_email(email)
        except ValueError as exc:
            raise CheckoutValidationError(str(exc)) from exc
        logger.info("Checkout iniciado para %s (documento %s)", payload.user_id, mask_tax_id(tax_id))
        return _ValidatedRequest(
            user_id=payload.user_id,
            email=email,
            name=payload.name or None,
            tax_id=tax_id,
            plan_type=payload.plan_type,
        )

    def _await_invoice(self, subscription_id: str) -> CheckoutResult:
        for attempt, delay in enumerate(self.poll_policy.delays(), start=1):
            self._sleep(delay)
            payments = self.gateway.list_subscription_payments(subscription_id)
            invoice_url = payments[0].get("invoiceUrl") if payments else None
            if invoice_url:
                return CheckoutResult(payment_url=invoice_url)
            logger.info("Cobrança da assinatura %s ainda indisponível (tentativa %s)", subscription_id, attempt)
        return CheckoutResult(error=INVOICE_PENDING_MESSAGE, pending=True)


def build_checkout_service(config: CheckoutConfig, *, gateway: BillingGateway | None = None) -> CheckoutService:
    """Wire the Asaas client and the polling policy from the startup configuration."""
    return CheckoutService(
        gateway or AsaasClient(config),
        poll_policy=InvoicePollPolicy.from_config(config),
    )
