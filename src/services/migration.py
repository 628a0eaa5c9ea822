"""Checks for moving a vault's ledger onto its successor.

The outgoing vault hands over a ``(shares, deposit_amount, want_amount)``
snapshot. The incoming vault takes it by direct assignment: no shares are
minted or burned, so every holder keeps the same claim on the same value.
"""
from core.exceptions import InvalidMigration
from models.vaults import LifecycleState, Vault
from schemas.operations import MigrationSnapshot
from utils.api import same_address


def snapshot_of(vault: Vault) -> MigrationSnapshot:
    return MigrationSnapshot(
        shares=vault.shares_total,
        deposit_amount=vault.deposit_total,
        want_amount=vault.want_total,
    )


def validate_successor(predecessor: Vault, successor: Vault) -> None:
    if predecessor.id == successor.id:
        raise InvalidMigration("a vault cannot be migrated onto itself")
    if successor.state == LifecycleState.retired:
        raise InvalidMigration(f"successor {successor.slug} is retired")
    if successor.shares_total != 0 or successor.deposit_total != 0:
        raise InvalidMigration(f"successor {successor.slug} already holds deposits")
    if not same_address(predecessor.deposit_asset, successor.deposit_asset):
        raise InvalidMigration("deposit assets differ")
    if predecessor.want_asset and not same_address(
        predecessor.want_asset, successor.want_asset or ""
    ):
        raise InvalidMigration("want assets differ")


def validate_incoming(
    predecessor: Vault, successor: Vault, snapshot: MigrationSnapshot
) -> None:
    validate_successor(predecessor, successor)
    if predecessor.successor_id != successor.id:
        raise InvalidMigration(
            f"{predecessor.slug} was not upgraded to {successor.slug}"
        )
    if predecessor.state != LifecycleState.retired:
        raise InvalidMigration(f"{predecessor.slug} has not been upgraded")
    expected = snapshot_of(predecessor)
    if (snapshot.shares, snapshot.deposit_amount, snapshot.want_amount) != (
        expected.shares,
        expected.deposit_amount,
        expected.want_amount,
    ):
        raise InvalidMigration(
            f"snapshot {snapshot.model_dump()} does not match {predecessor.slug} ledger"
        )
