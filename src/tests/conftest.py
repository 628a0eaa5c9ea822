import pytest
from sqlmodel import Session

import schemas
from core.db import create_db_and_tables, engine
from models import PricePerShareHistory, Vault, VaultEvent, VaultHarvester
from services.adapters import MemoryChain, build_memory_adapters
from services.vault_engine import VaultEngine, VaultLockRegistry
from services.vault_service import create_vault


@pytest.fixture(scope="module")
def db_session():
    create_db_and_tables()
    session = Session(engine)
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_vaults(db_session: Session):
    db_session.rollback()
    db_session.query(VaultEvent).delete()
    db_session.query(PricePerShareHistory).delete()
    db_session.query(VaultHarvester).delete()
    db_session.query(Vault).delete()
    db_session.commit()


@pytest.fixture
def chain():
    return MemoryChain()


@pytest.fixture
def vault_in():
    def _vault_in(slug: str = "cake-vault", **overrides) -> schemas.VaultCreate:
        data = dict(
            name=slug.replace("-", " ").title(),
            slug=slug,
            contract_address=f"0xVault{slug}",
            deposit_asset="0xCake",
            earned_asset="0xCake",
            reward_asset="0xBalle",
            earned_to_reward_path=["0xCake", "0xWbnb", "0xBalle"],
            owner="0x1111111111111111111111111111111111111111",
            governance="0x2222222222222222222222222222222222222222",
            rewards_address="0x3333333333333333333333333333333333333333",
            treasury_address="0x4444444444444444444444444444444444444444",
            harvesters=["0x5555555555555555555555555555555555555555"],
        )
        data.update(overrides)
        return schemas.VaultCreate(**data)

    return _vault_in


@pytest.fixture
def make_engine(db_session: Session, chain: MemoryChain, vault_in):
    locks = VaultLockRegistry()

    def _make_engine(slug: str = "cake-vault", **overrides) -> VaultEngine:
        vault = create_vault(db_session, vault_in(slug, **overrides))
        return VaultEngine(
            db_session, vault, adapters=build_memory_adapters(vault, chain), locks=locks
        )

    return _make_engine
