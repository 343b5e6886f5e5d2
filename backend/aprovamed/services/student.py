from __future__ import annotations

from typing import Protocol

from sqlmodel import Session, select

from aprovamed.core.logging_setup import logger
from aprovamed.models.student import Student


class SubscriberStore(Protocol):
    def get_customer_id(self, user_id: str) -> str | None:
        ...

    def save_customer_id(self, user_id: str, customer_id: str) -> None:
        ...


class StudentStore:
    """Keeps the Asaas customer id cached on the student record."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_user_id(self, user_id: str) -> Student | None:
        statement = select(Student).where(Student.user_id == user_id)
        return self.session.exec(statement).first()

    def get_customer_id(self, user_id: str) -> str | None:
        student = self.get_by_user_id(user_id)
        return student.asaas_customer_id if student else None

    def save_customer_id(self, user_id: str, customer_id: str) -> None:
        student = self.get_by_user_id(user_id)
        if student is None:
            logger.warning("Aluno %s sem cadastro; criando registro para guardar o cliente Asaas.", user_id)
            student = Student(user_id=user_id)
        else:
            student.touch()
        student.asaas_customer_id = customer_id
        self.session.add(student)
        self.session.commit()
        self.session.refresh(student)
