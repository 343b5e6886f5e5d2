from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CheckoutPayload(BaseModel):
    """Corpo enviado pela página de assinatura.

    Todos os campos são opcionais aqui: a ausência de um campo obrigatório é
    respondida pelo serviço com ``{"error": ...}`` e não com 422.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, coerce_numbers_to_str=True)

    user_id: str | None = Field(default=None, validation_alias=AliasChoices("userId", "user_id"))
    email: str | None = None
    name: str | None = None
    tax_id: str | None = Field(default=None, validation_alias=AliasChoices("taxId", "cpfCnpj", "tax_id"))
    plan_type: str | None = Field(default=None, validation_alias=AliasChoices("planType", "plan_type"))


class PlanRead(BaseModel):
    id: str
    label: str
    price: str
    period: str
    description: str
    badge: str | None = None
    value: float
    cycle: str
