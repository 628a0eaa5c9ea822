from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Header
from sqlmodel import Session

from core.constants import CALLER_HEADER
from core.db import engine
from services.vault_engine import VaultEngine
from services.vault_service import get_vault_by_slug


def get_db() -> Generator:
    with Session(engine) as session:
        yield session


def get_caller(
    caller: Annotated[str, Header(alias=CALLER_HEADER)],
) -> str:
    return caller.strip()


def get_vault_engine(slug: str, session: Annotated[Session, Depends(get_db)]) -> VaultEngine:
    vault = get_vault_by_slug(session, slug)
    return VaultEngine(session, vault)


SessionDep = Annotated[Session, Depends(get_db)]
CallerDep = Annotated[str, Depends(get_caller)]
EngineDep = Annotated[VaultEngine, Depends(get_vault_engine)]
