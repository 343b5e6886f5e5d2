import pytest

from aprovamed.services.asaas import TaxIdAlreadyExistsError, UpdateOutcome
from aprovamed.services.customer_resolution import (
    ResolutionRequest,
    ResolutionState,
    Transition,
    from_cached_id,
    from_created,
    from_email_match,
    from_tax_id_match,
    resolve_customer,
)
from aprovamed.services.errors import CustomerResolutionError

TAX_ID = "12345678909"
EMAIL = "aluna@example.com"


def _request(cached: str | None = None) -> ResolutionRequest:
    return ResolutionRequest(tax_id=TAX_ID, email=EMAIL, name="Aluna Teste", cached_customer_id=cached)


def test_cached_id_that_accepts_the_tax_id_is_used_without_searching(fake_asaas):
    fake_asaas.add_customer("cus_cached", email="antigo@example.com")

    resolved = resolve_customer(fake_asaas, _request("cus_cached"))

    assert resolved.customer_id == "cus_cached"
    assert resolved.state is ResolutionState.CACHED_ID
    assert fake_asaas.call_names() == ["update_customer_tax_id"]


def test_stale_cached_id_without_other_matches_creates_customer(fake_asaas):
    resolved = resolve_customer(fake_asaas, _request("cus_deleted"))

    assert resolved.customer_id == "cus_new_1"
    assert resolved.state is ResolutionState.CREATED
    assert fake_asaas.call_names() == [
        "update_customer_tax_id",
        "find_customer_by_email",
        "find_customer_by_tax_id",
        "create_customer",
    ]
    assert fake_asaas.customers["cus_new_1"]["cpfCnpj"] == TAX_ID


def test_cached_id_conflict_switches_to_tax_id_owner(fake_asaas):
    fake_asaas.add_customer("cus_cached", email=EMAIL)
    fake_asaas.add_customer("cus_owner", tax_id=TAX_ID)

    resolved = resolve_customer(fake_asaas, _request("cus_cached"))

    assert resolved.customer_id == "cus_owner"
    assert resolved.state is ResolutionState.CACHED_ID
    assert "create_customer" not in fake_asaas.call_names()


def test_tax_id_match_wins_over_email_match(fake_asaas):
    fake_asaas.add_customer("cus_by_email", email=EMAIL, tax_id="98765432100")
    fake_asaas.add_customer("cus_by_tax_id", email="outra@example.com", tax_id=TAX_ID)

    resolved = resolve_customer(fake_asaas, _request())

    assert resolved.customer_id == "cus_by_tax_id"
    assert ("update_customer_tax_id", ("cus_by_email", TAX_ID)) in fake_asaas.calls
    assert fake_asaas.customers["cus_by_email"]["cpfCnpj"] == "98765432100"


def test_email_match_receives_the_tax_id(fake_asaas):
    fake_asaas.add_customer("cus_by_email", email=EMAIL)

    resolved = resolve_customer(fake_asaas, _request())

    assert resolved.customer_id == "cus_by_email"
    assert resolved.state is ResolutionState.EMAIL_MATCH
    assert fake_asaas.customers["cus_by_email"]["cpfCnpj"] == TAX_ID


def test_tax_id_lookup_used_when_no_email_match(fake_asaas):
    fake_asaas.add_customer("cus_by_tax_id", tax_id=TAX_ID)

    resolved = resolve_customer(fake_asaas, _request())

    assert resolved.customer_id == "cus_by_tax_id"
    assert resolved.state is ResolutionState.TAX_ID_MATCH


def test_creation_race_falls_back_to_tax_id_lookup(fake_asaas):
    fake_asaas.created_concurrently = {"id": "cus_race", "email": EMAIL, "cpfCnpj": TAX_ID, "name": None}

    resolved = resolve_customer(fake_asaas, _request())

    assert resolved.customer_id == "cus_race"
    assert resolved.state is ResolutionState.CREATED
    assert fake_asaas.call_names()[-2:] == ["create_customer", "find_customer_by_tax_id"]


def test_creation_conflict_without_owner_is_raised():
    class ConflictingDirectory:
        def find_customer_by_tax_id(self, tax_id):
            return None

        def create_customer(self, *, name, email, tax_id):
            raise TaxIdAlreadyExistsError("Erro ao criar cliente: duplicado", code="CUSTOMER_CPF_CNPJ_ALREADY_EXISTS")

    with pytest.raises(TaxIdAlreadyExistsError):
        from_created(ConflictingDirectory(), _request())


def test_resolution_never_ends_without_an_id():
    class EmptyCreation:
        def find_customer_by_tax_id(self, tax_id):
            return None

        def find_customer_by_email(self, email):
            return None

        def update_customer_tax_id(self, customer_id, tax_id):
            return UpdateOutcome.NOT_FOUND

        def create_customer(self, *, name, email, tax_id):
            return ""

    with pytest.raises(CustomerResolutionError):
        resolve_customer(EmptyCreation(), _request("cus_gone"))


def test_transitions_are_independent(fake_asaas):
    assert from_cached_id(fake_asaas, _request()) == Transition(None, ResolutionState.EMAIL_MATCH)
    assert fake_asaas.calls == []

    assert from_email_match(fake_asaas, _request()) == Transition(None, ResolutionState.TAX_ID_MATCH)
    assert from_tax_id_match(fake_asaas, _request()) == Transition(None, ResolutionState.CREATED)

    fake_asaas.add_customer("cus_x", tax_id=TAX_ID)
    assert from_tax_id_match(fake_asaas, _request()) == Transition("cus_x", ResolutionState.CREATED)
