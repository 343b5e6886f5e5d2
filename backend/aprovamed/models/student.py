from __future__ import annotations

from sqlmodel import Field

from aprovamed.models.base import TimestampedModel, UUIDModel


class Student(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "students"

    user_id: str = Field(index=True, unique=True, max_length=64)
    email: str | None = Field(default=None, index=True)
    name: str | None = Field(default=None)

    # Cliente correspondente no Asaas, gravado após a primeira resolução bem-sucedida
    asaas_customer_id: str | None = Field(default=None, max_length=64)
