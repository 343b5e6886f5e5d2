from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PlanType(str, Enum):
    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


@dataclass(frozen=True)
class Plan:
    plan_type: PlanType
    value: float
    cycle: str
    description: str
    # Exibição na página de assinatura
    label: str
    price_label: str
    period: str
    blurb: str
    badge: str | None = None


_PLANS: dict[PlanType, Plan] = {
    PlanType.MONTHLY: Plan(
        plan_type=PlanType.MONTHLY,
        value=39.90,
        cycle="MONTHLY",
        description="Assinatura AprovaMed IA - Plano Mensal",
        label="Mensal",
        price_label="39,90",
        period="/mês",
        blurb="Renovação mensal",
    ),
    PlanType.SEMIANNUAL: Plan(
        plan_type=PlanType.SEMIANNUAL,
        value=199.00,
        cycle="SEMIANNUALLY",
        description="Assinatura AprovaMed IA - Plano Semestral",
        label="Semestral",
        price_label="199,00",
        period="/semestre",
        blurb="Equivale a R$ 33,16/mês",
        badge="-17%",
    ),
    PlanType.ANNUAL: Plan(
        plan_type=PlanType.ANNUAL,
        value=357.00,
        cycle="ANNUALLY",
        description="Assinatura AprovaMed IA - Plano Anual",
        label="Anual",
        price_label="357,00",
        period="/ano",
        blurb="Equivale a R$ 29,75/mês",
        badge="Melhor Valor",
    ),
}


def resolve_plan(plan_type: str | PlanType | None) -> Plan:
    """Match the literal plan id; absent or unknown values (including other casings) bill as monthly."""
    if isinstance(plan_type, PlanType):
        return _PLANS[plan_type]
    for known in PlanType:
        if plan_type == known.value:
            return _PLANS[known]
    return _PLANS[PlanType.MONTHLY]


def list_plans() -> list[Plan]:
    return [_PLANS[plan_type] for plan_type in PlanType]
