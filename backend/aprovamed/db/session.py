from typing import Any, Generator

from sqlmodel import Session, SQLModel, create_engine

from aprovamed.core.config import settings
from aprovamed.core.logging_setup import logger
from aprovamed.models.student import Student  # noqa: F401  (registra a tabela no metadata)

connect_args: dict[str, Any] = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    connect_args=connect_args,
)


def init_db() -> None:
    SQLModel.metadata.create_all(bind=engine)
    logger.info("Tabelas verificadas em %s", engine.url.render_as_string(hide_password=True))


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
