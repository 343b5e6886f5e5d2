from __future__ import annotations

import uuid
from datetime import date
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

from aprovamed.api.deps import get_checkout_service, get_db
from aprovamed.main import app
from aprovamed.services.asaas import AsaasError, TaxIdAlreadyExistsError, UpdateOutcome
from aprovamed.services.checkout import CheckoutService
from aprovamed.services.invoice_polling import InvoicePollPolicy
from aprovamed.services.plans import Plan


class FakeAsaas:
    """In-memory stand-in for the Asaas customer, subscription and payment endpoints."""

    def __init__(self) -> None:
        self.customers: dict[str, dict[str, Any]] = {}
        self.subscriptions: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.subscription_error: AsaasError | None = None
        self.empty_payment_lookups = 0
        # Customer that appears right before our creation call, as if another checkout won the race
        self.created_concurrently: dict[str, Any] | None = None
        self._next_id = 0

    def add_customer(self, customer_id: str, *, email: str | None = None, tax_id: str | None = None) -> dict[str, Any]:
        customer = {"id": customer_id, "email": email, "cpfCnpj": tax_id, "name": None}
        self.customers[customer_id] = customer
        return customer

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def find_customer_by_tax_id(self, tax_id: str) -> dict[str, Any] | None:
        self.calls.append(("find_customer_by_tax_id", tax_id))
        return next((c for c in self.customers.values() if c["cpfCnpj"] == tax_id), None)

    def find_customer_by_email(self, email: str) -> dict[str, Any] | None:
        self.calls.append(("find_customer_by_email", email))
        return next((c for c in self.customers.values() if c["email"] == email), None)

    def update_customer_tax_id(self, customer_id: str, tax_id: str) -> UpdateOutcome:
        self.calls.append(("update_customer_tax_id", (customer_id, tax_id)))
        if customer_id not in self.customers:
            return UpdateOutcome.NOT_FOUND
        owner = next((c for c in self.customers.values() if c["cpfCnpj"] == tax_id), None)
        if owner and owner["id"] != customer_id:
            return UpdateOutcome.TAX_ID_TAKEN
        self.customers[customer_id]["cpfCnpj"] = tax_id
        return UpdateOutcome.UPDATED

    def create_customer(self, *, name: str | None, email: str, tax_id: str) -> str:
        self.calls.append(("create_customer", (name, email, tax_id)))
        if self.created_concurrently is not None:
            concurrent, self.created_concurrently = self.created_concurrently, None
            self.customers[concurrent["id"]] = concurrent
        if any(c["cpfCnpj"] == tax_id for c in self.customers.values()):
            raise TaxIdAlreadyExistsError(
                "Erro ao criar cliente: O CPF/CNPJ informado já está cadastrado.",
                code="CUSTOMER_CPF_CNPJ_ALREADY_EXISTS",
                status_code=400,
            )
        self._next_id += 1
        customer_id = f"cus_new_{self._next_id}"
        self.customers[customer_id] = {"id": customer_id, "email": email, "cpfCnpj": tax_id, "name": name}
        return customer_id

    def create_subscription(self, *, customer_id: str, plan: Plan, next_due_date: date) -> dict[str, Any]:
        self.calls.append(("create_subscription", (customer_id, plan.plan_type.value, next_due_date)))
        if self.subscription_error is not None:
            raise self.subscription_error
        subscription_id = f"sub_{len(self.subscriptions) + 1}"
        subscription = {
            "id": subscription_id,
            "customer": customer_id,
            "value": plan.value,
            "cycle": plan.cycle,
            "description": plan.description,
            "nextDueDate": next_due_date.isoformat(),
        }
        self.subscriptions[subscription_id] = subscription
        return subscription

    def list_subscription_payments(self, subscription_id: str) -> list[dict[str, Any]]:
        self.calls.append(("list_subscription_payments", subscription_id))
        if self.empty_payment_lookups > 0:
            self.empty_payment_lookups -= 1
            return []
        return [{"id": f"pay_{subscription_id}", "invoiceUrl": f"https://www.asaas.com/i/{subscription_id}"}]

    def close(self) -> None:
        pass


class MemoryStore:
    def __init__(self, cached: dict[str, str] | None = None) -> None:
        self.cached = dict(cached or {})
        self.reads: list[str] = []
        self.writes: list[tuple[str, str]] = []

    def get_customer_id(self, user_id: str) -> str | None:
        self.reads.append(user_id)
        return self.cached.get(user_id)

    def save_customer_id(self, user_id: str, customer_id: str) -> None:
        self.writes.append((user_id, customer_id))
        self.cached[user_id] = customer_id


@pytest.fixture()
def fake_asaas() -> FakeAsaas:
    return FakeAsaas()


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def checkout_service(fake_asaas, sleeps) -> CheckoutService:
    return CheckoutService(
        fake_asaas,
        poll_policy=InvoicePollPolicy(max_attempts=1, initial_delay=1.5),
        sleep=sleeps.append,
        next_due_date=lambda: date(2026, 10, 20),
    )


@pytest.fixture()
def db_engine(tmp_path):
    db_path = tmp_path / f"test_{uuid.uuid4().hex}.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Session:
    with Session(db_engine) as session:
        yield session


@pytest.fixture()
def client(db_engine, checkout_service) -> TestClient:
    def override_db():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_checkout_service, None)
