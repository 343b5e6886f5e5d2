"""Resolution of the Asaas customer used for a student's subscription.

Asaas treats the CPF/CNPJ as unique across customers, so a student may end up
matched to an existing customer found through a cached id, the e-mail or the
tax id itself. The resolution runs as a small state machine; each state has
one transition function that only talks to the customer directory and either
yields a customer id or names the next state to try.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple

from aprovamed.core.logging_setup import logger
from aprovamed.services.asaas import CustomerDirectory, TaxIdAlreadyExistsError, UpdateOutcome
from aprovamed.services.errors import CustomerResolutionError


class ResolutionState(str, Enum):
    CACHED_ID = "cached_id"
    EMAIL_MATCH = "email_match"
    TAX_ID_MATCH = "tax_id_match"
    CREATED = "created"


@dataclass(frozen=True)
class ResolutionRequest:
    tax_id: str
    email: str
    name: str | None = None
    cached_customer_id: str | None = None


class Transition(NamedTuple):
    customer_id: str | None
    next_state: ResolutionState | None


@dataclass(frozen=True)
class ResolvedCustomer:
    customer_id: str
    state: ResolutionState


def _claim_tax_id(directory: CustomerDirectory, customer_id: str, tax_id: str) -> str | None:
    """Move the tax id onto ``customer_id``; when another customer owns it, use that one."""
    outcome = directory.update_customer_tax_id(customer_id, tax_id)
    if outcome is UpdateOutcome.UPDATED:
        return customer_id
    if outcome is UpdateOutcome.TAX_ID_TAKEN:
        owner = directory.find_customer_by_tax_id(tax_id)
        return owner["id"] if owner else None
    return None


def from_cached_id(directory: CustomerDirectory, request: ResolutionRequest) -> Transition:
    if not request.cached_customer_id:
        return Transition(None, ResolutionState.EMAIL_MATCH)
    customer_id = _claim_tax_id(directory, request.cached_customer_id, request.tax_id)
    return Transition(customer_id, ResolutionState.EMAIL_MATCH)


def from_email_match(directory: CustomerDirectory, request: ResolutionRequest) -> Transition:
    existing = directory.find_customer_by_email(request.email)
    if not existing:
        return Transition(None, ResolutionState.TAX_ID_MATCH)
    customer_id = _claim_tax_id(directory, existing["id"], request.tax_id)
    return Transition(customer_id, ResolutionState.TAX_ID_MATCH)


def from_tax_id_match(directory: CustomerDirectory, request: ResolutionRequest) -> Transition:
    existing = directory.find_customer_by_tax_id(request.tax_id)
    return Transition(existing["id"] if existing else None, ResolutionState.CREATED)


def from_created(directory: CustomerDirectory, request: ResolutionRequest) -> Transition:
    try:
        customer_id = directory.create_customer(name=request.name, email=request.email, tax_id=request.tax_id)
    except TaxIdAlreadyExistsError:
        # Another resolution created the customer between the lookup and the creation.
        existing = directory.find_customer_by_tax_id(request.tax_id)
        if not existing:
            raise
        customer_id = existing["id"]
    return Transition(customer_id, None)


TRANSITIONS: dict[ResolutionState, Callable[[CustomerDirectory, ResolutionRequest], Transition]] = {
    ResolutionState.CACHED_ID: from_cached_id,
    ResolutionState.EMAIL_MATCH: from_email_match,
    ResolutionState.TAX_ID_MATCH: from_tax_id_match,
    ResolutionState.CREATED: from_created,
}


def resolve_customer(directory: CustomerDirectory, request: ResolutionRequest) -> ResolvedCustomer:
    """Return exactly one usable Asaas customer id, or raise."""
    state: ResolutionState | None = ResolutionState.CACHED_ID
    while state is not None:
        transition = TRANSITIONS[state](directory, request)
        if transition.customer_id:
            logger.info("Cliente Asaas resolvido via %s: %s", state.value, transition.customer_id)
            return ResolvedCustomer(customer_id=transition.customer_id, state=state)
        state = transition.next_state
    raise CustomerResolutionError("Não foi possível identificar o cliente no Asaas.")
