import pytest
from sqlmodel import Session, select

import schemas
from core.exceptions import InvalidMigration, Unauthorized
from models import PricePerShareHistory
from models.vaults import LifecycleState

USER = "0x6666666666666666666666666666666666666666"
OWNER = "0x1111111111111111111111111111111111111111"
GOVERNANCE = "0x2222222222222222222222222222222222222222"
HARVESTER = "0x5555555555555555555555555555555555555555"


@pytest.fixture
def vaults(make_engine, chain):
    no_fee = schemas.FeeSettings(
        entrance_fee=10000,
        performance_fee=0,
        rewards_fee_factor=750,
        treasury_fee_factor=250,
        slippage=50,
    )
    old = make_engine("cake-vault-v1", settings=no_fee)
    new = make_engine("cake-vault-v2")

    chain.mint("0xCake", USER, 500)
    old.deposit(OWNER, USER, 500)
    old.adapters.farm.accrue(5)
    old.harvest(HARVESTER)
    return old, new


def test_migration_conserves_ledger(vaults, chain, db_session: Session):
    old, new = vaults
    before = (old.vault.shares_total, old.vault.deposit_total, old.vault.want_total)

    snapshot = old.upgrade_to(OWNER, new.vault)
    assert (snapshot.shares, snapshot.deposit_amount, snapshot.want_amount) == before
    assert old.vault.state == LifecycleState.retired
    assert old.vault.successor_id == new.vault_id
    # the successor is cleared to pull the recalled funds
    assert chain.allowance("0xCake", old.vault.contract_address, new.vault.contract_address) == 505

    new.upgrade_from(OWNER, old.vault, snapshot)

    assert (new.vault.shares_total, new.vault.deposit_total, new.vault.want_total) == (
        500,
        505,
        0,
    )
    assert (old.vault.shares_total, old.vault.deposit_total, old.vault.want_total) == (
        0,
        0,
        0,
    )
    assert new.vault.predecessor_id == old.vault_id
    assert new.adapters.farm.staked == 505
    assert old.adapters.farm.staked == 0
    assert chain.balance_of("0xCake", old.vault.contract_address) == 0

    samples = db_session.exec(
        select(PricePerShareHistory).where(PricePerShareHistory.vault_id == new.vault_id)
    ).all()
    assert samples[0].price_per_share == pytest.approx(1.01)


def test_holders_withdraw_from_successor(vaults, chain):
    old, new = vaults
    new.upgrade_from(OWNER, old.vault, old.upgrade_to(OWNER, new.vault))

    result = new.withdraw(OWNER, USER, 505)

    assert result.shares == 500
    assert chain.balance_of("0xCake", USER) == 505


def test_upgrade_from_requires_upgrade_to(vaults):
    old, new = vaults
    snapshot = schemas.MigrationSnapshot(shares=500, deposit_amount=505, want_amount=0)

    with pytest.raises(InvalidMigration):
        new.upgrade_from(OWNER, old.vault, snapshot)

    assert new.vault.shares_total == 0
    assert old.vault.shares_total == 500


def test_upgrade_from_rejects_mismatched_snapshot(vaults, chain):
    old, new = vaults
    snapshot = old.upgrade_to(OWNER, new.vault)
    forged = schemas.MigrationSnapshot(
        shares=snapshot.shares, deposit_amount=snapshot.deposit_amount + 1, want_amount=0
    )

    with pytest.raises(InvalidMigration):
        new.upgrade_from(OWNER, old.vault, forged)

    assert new.vault.deposit_total == 0
    assert old.vault.deposit_total == 505
    assert chain.balance_of("0xCake", old.vault.contract_address) == 505


def test_upgrade_to_requires_fresh_successor(vaults, chain):
    old, new = vaults
    chain.mint("0xCake", USER, 10)
    new.deposit(OWNER, USER, 10)

    with pytest.raises(InvalidMigration):
        old.upgrade_to(OWNER, new.vault)
    assert old.vault.state == LifecycleState.active
    assert old.adapters.farm.staked == 505


def test_upgrade_to_requires_matching_asset(make_engine, vaults):
    old, _ = vaults
    other = make_engine("busd-vault", deposit_asset="0xBusd")

    with pytest.raises(InvalidMigration):
        old.upgrade_to(OWNER, other.vault)


def test_upgrade_to_only_once(vaults, make_engine):
    old, new = vaults
    old.upgrade_to(OWNER, new.vault)
    third = make_engine("cake-vault-v3")

    with pytest.raises(InvalidMigration):
        old.upgrade_to(OWNER, third.vault)


def test_migration_is_owner_only(vaults):
    old, new = vaults
    with pytest.raises(Unauthorized):
        old.upgrade_to(GOVERNANCE, new.vault)

    snapshot = old.upgrade_to(OWNER, new.vault)
    with pytest.raises(Unauthorized):
        new.upgrade_from(GOVERNANCE, old.vault, snapshot)
