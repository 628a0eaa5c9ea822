import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from core.config import settings

logger = logging.getLogger(__name__)


def _build_engine(uri: str):
    if uri.startswith("sqlite"):
        # one shared connection so every session sees the same in-memory db
        return create_engine(
            uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(uri, pool_pre_ping=True)


engine = _build_engine(str(settings.SQLALCHEMY_DATABASE_URI))


# make sure all SQLModel models are imported (models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly
# for more details: https://github.com/tiangolo/full-stack-fastapi-postgresql/issues/28
import models  # noqa: E402,F401


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


def init_db(session: Session) -> None:
    create_db_and_tables()

    cnt = len(session.exec(select(models.Vault.id)).all())
    logger.info("Database ready with %s registered vault(s)", cnt)
