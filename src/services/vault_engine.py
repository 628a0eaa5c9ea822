"""Mutating operations of a vault.

Every operation runs under the vault's lock and inside one database
transaction, with savepoints taken on the adapters. If any step raises,
the session and the adapter savepoints are rolled back together and the
error propagates, so a rejected call leaves no trace.
"""
from contextlib import ExitStack, contextmanager
import logging
import threading
from typing import Iterator, Sequence
import uuid

from sqlmodel import Session, select

from core import constants
from core.exceptions import (
    InvalidAddress,
    InvalidAmount,
    InvalidMigration,
    Unauthorized,
    UnsafeRecovery,
    VaultError,
)
from models.vault_harvester import VaultHarvester
from models.vaults import LifecycleState, Vault
from schemas.fee_info import FeeSettings
from schemas.operations import MigrationSnapshot
from services import fee_engine, lifecycle, migration, vault_ledger
from services.adapters import VaultAdapters, build_adapters
from services.events import record_event
from services.fee_engine import HarvestResult
from services.performance import record_price_per_share
from services.vault_ledger import WithdrawResult
from utils.api import is_zero_address, same_address

logger = logging.getLogger(__name__)


class VaultLockRegistry:
    """One re-entrant lock per vault id, shared by every engine in the process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[uuid.UUID, threading.RLock] = {}

    def get(self, vault_id: uuid.UUID) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(vault_id)
            if lock is None:
                lock = self._locks[vault_id] = threading.RLock()
            return lock


vault_locks = VaultLockRegistry()


class VaultEngine:
    def __init__(
        self,
        session: Session,
        vault: Vault,
        adapters: VaultAdapters | None = None,
        locks: VaultLockRegistry = vault_locks,
    ):
        self.session = session
        self.vault = vault
        self.vault_id = vault.id
        self.adapters = adapters or build_adapters(vault)
        self.locks = locks

    @contextmanager
    def _atomic(self, operation: str, *others: Vault) -> Iterator[Vault]:
        # lock in a stable order so two migrations cannot deadlock
        vault_ids = sorted({self.vault_id, *(v.id for v in others)}, key=str)
        with ExitStack() as stack:
            for vault_id in vault_ids:
                stack.enter_context(self.locks.get(vault_id))

            savepoints = self.adapters.savepoints()
            try:
                vault = self.session.exec(
                    select(Vault).where(Vault.id == self.vault_id).with_for_update()
                ).one()
                self.session.refresh(vault)
                for other in others:
                    self.session.refresh(other)
                self.vault = vault
                yield vault
                self.session.commit()
                for savepoint in reversed(savepoints):
                    savepoint.release()
            except Exception as e:
                self.session.rollback()
                for savepoint in reversed(savepoints):
                    savepoint.rollback()
                if isinstance(e, VaultError):
                    logger.warning(
                        "Vault %s rejected %s: %s", self.vault_id, operation, e.error_message
                    )
                else:
                    logger.error(
                        "Vault %s failed %s: %s", self.vault_id, operation, e, exc_info=True
                    )
                raise

    # -- capability checks -------------------------------------------------

    @staticmethod
    def _require_owner(vault: Vault, caller: str) -> None:
        if not same_address(caller, vault.owner):
            raise Unauthorized(f"{caller} is not the owner of {vault.slug}")

    @staticmethod
    def _require_governance(vault: Vault, caller: str) -> None:
        if not same_address(caller, vault.governance):
            raise Unauthorized(f"{caller} is not the governance of {vault.slug}")

    def is_harvester(self, address: str) -> bool:
        harvesters = self.session.exec(
            select(VaultHarvester.address).where(VaultHarvester.vault_id == self.vault_id)
        ).all()
        return any(same_address(address, h) for h in harvesters)

    # -- reads -------------------------------------------------------------

    def pending_yield(self) -> int:
        return self.adapters.farm.claimable_yield()

    # -- ledger ------------------------------------------------------------

    def deposit(self, caller: str, user: str, amount: int) -> int:
        with self._atomic("deposit") as vault:
            self._require_owner(vault, caller)
            if amount <= 0:
                raise InvalidAmount("deposit amount must be positive")
            if is_zero_address(user):
                raise InvalidAddress("deposit user is the zero address")
            lifecycle.require_active(vault.state)

            credited = vault_ledger.credited_amount(amount, vault.entrance_fee)
            shares = vault_ledger.shares_for_deposit(
                credited, vault.deposit_total, vault.shares_total
            )
            if shares == 0:
                raise InvalidAmount(f"deposit of {amount} mints no shares")

            bank, farm = self.adapters.bank, self.adapters.farm
            bank.transfer(vault.deposit_asset, user, vault.contract_address, amount)
            farm.deploy(credited)
            entrance_fee = amount - credited
            if entrance_fee:
                bank.transfer(
                    vault.deposit_asset,
                    vault.contract_address,
                    vault.treasury_address,
                    entrance_fee,
                )
                record_event(
                    self.session,
                    vault.id,
                    constants.ENTRANCE_FEE_EVENT,
                    user=user,
                    amount=entrance_fee,
                )

            vault.deposit_total += credited
            vault.shares_total += shares
            vault.deployed_total += credited
            self.session.add(vault)
            record_event(
                self.session,
                vault.id,
                constants.DEPOSIT_EVENT,
                user=user,
                amount=amount,
                shares=shares,
            )
            logger.info(
                "Deposited %s into %s for %s: %s shares (deposit_total=%s, shares_total=%s)",
                amount,
                vault.slug,
                user,
                shares,
                vault.deposit_total,
                vault.shares_total,
            )
        return shares

    def withdraw(self, caller: str, user: str, amount: int) -> WithdrawResult:
        # withdrawals stay open whatever the lifecycle state
        with self._atomic("withdraw") as vault:
            self._require_owner(vault, caller)
            if is_zero_address(user):
                raise InvalidAddress("withdraw user is the zero address")

            result = vault_ledger.withdraw_split(
                amount, vault.deposit_total, vault.shares_total, vault.want_total
            )

            shortfall = result.deposit_amount - vault.idle_total
            if shortfall > 0:
                recalled = self.adapters.farm.recall(shortfall)
                vault.deployed_total -= recalled

            bank = self.adapters.bank
            bank.transfer(
                vault.deposit_asset, vault.contract_address, user, result.deposit_amount
            )
            if result.want_amount:
                bank.transfer(
                    vault.want_asset, vault.contract_address, user, result.want_amount
                )

            vault.shares_total -= result.shares
            vault.deposit_total -= result.deposit_amount
            vault.want_total -= result.want_amount
            vault.deployed_total = min(vault.deployed_total, vault.deposit_total)
            self.session.add(vault)
            record_event(
                self.session,
                vault.id,
                constants.WITHDRAW_EVENT,
                user=user,
                amount=result.deposit_amount,
                want_amount=result.want_amount,
                shares=result.shares,
            )
            logger.info(
                "Withdrew %s from %s for %s: %s shares burned (deposit_total=%s, shares_total=%s)",
                result.deposit_amount,
                vault.slug,
                user,
                result.shares,
                vault.deposit_total,
                vault.shares_total,
            )
        return result

    # -- harvest -----------------------------------------------------------

    def _swap(
        self, vault: Vault, asset_out: str, path: Sequence[str], amount: int
    ) -> int:
        if amount == 0:
            return 0
        if same_address(vault.earned_asset, asset_out):
            return amount
        path = list(path) or [vault.earned_asset, asset_out]
        quoted = self.adapters.swap.quote(path, amount)
        min_out = fee_engine.min_amount_out(quoted, vault.slippage)
        return self.adapters.swap.swap_exact_in(path, amount, min_out)

    def _unaccounted(self, vault: Vault, asset: str) -> int:
        """Custody balance of ``asset`` beyond what the ledger says it holds."""
        held = 0
        if same_address(asset, vault.deposit_asset):
            held += vault.idle_total
        if vault.want_asset and same_address(asset, vault.want_asset):
            held += vault.want_total
        balance = self.adapters.bank.balance_of(asset, vault.contract_address)
        return max(balance - held, 0)

    def harvest(self, caller: str) -> HarvestResult:
        with self._atomic("harvest") as vault:
            if not (self.is_harvester(caller) or same_address(caller, vault.governance)):
                raise Unauthorized(f"{caller} may not harvest {vault.slug}")
            lifecycle.require_active(vault.state)

            if vault.shares_total == 0:
                logger.info("Nothing to harvest on %s: no shares outstanding", vault.slug)
                return HarvestResult(0, 0, 0, 0)

            # output of an earlier harvest that failed after claiming or swapping
            carried = self._unaccounted(vault, vault.earned_asset)
            carried_fees = 0
            if not same_address(vault.reward_asset, vault.earned_asset):
                carried_fees = self._unaccounted(vault, vault.reward_asset)
            if carried or carried_fees:
                logger.info(
                    "Picking up %s earned and %s reward asset left in %s custody",
                    carried,
                    carried_fees,
                    vault.slug,
                )
            harvested = carried + self.adapters.farm.claim()

            fee = fee_engine.performance_fee_of(harvested, vault.performance_fee)
            fee_out = carried_fees + self._swap(
                vault, vault.reward_asset, vault.swap_path("reward"), fee
            )
            to_rewards, to_treasury = fee_engine.split_fee(fee_out, vault.rewards_fee_factor)
            bank = self.adapters.bank
            bank.transfer(
                vault.reward_asset, vault.contract_address, vault.rewards_address, to_rewards
            )
            bank.transfer(
                vault.reward_asset, vault.contract_address, vault.treasury_address, to_treasury
            )

            remainder = harvested - fee
            if vault.is_two_asset:
                reinvested = self._swap(
                    vault, vault.want_asset, vault.swap_path("want"), remainder
                )
                vault.want_total += reinvested
            else:
                reinvested = self._swap(
                    vault, vault.deposit_asset, vault.swap_path("deposit"), remainder
                )
                self.adapters.farm.deploy(reinvested)
                vault.deposit_total += reinvested
                vault.deployed_total += reinvested
            self.session.add(vault)

            record_event(self.session, vault.id, constants.HARVEST_EVENT, amount=harvested)
            record_event(
                self.session,
                vault.id,
                constants.DISTRIBUTE_FEES_EVENT,
                rewards_amount=to_rewards,
                treasury_amount=to_treasury,
            )
            record_price_per_share(self.session, vault)
            logger.info(
                "Harvested %s on %s: fee %s -> rewards %s, treasury %s; reinvested %s",
                harvested,
                vault.slug,
                fee,
                to_rewards,
                to_treasury,
                reinvested,
            )
        return HarvestResult(harvested, to_rewards, to_treasury, reinvested)

    # -- lifecycle ---------------------------------------------------------

    def _set_state(self, vault: Vault, state: LifecycleState, event: str) -> None:
        previous = vault.state
        vault.state = state
        self.session.add(vault)
        record_event(self.session, vault.id, event)
        logger.info("Vault %s moved from %s to %s", vault.slug, previous.value, state.value)

    def _recall_everything(self, vault: Vault) -> int:
        recalled = self.adapters.farm.emergency_recall_all()
        vault.deployed_total = 0
        return recalled

    def pause(self, caller: str) -> None:
        with self._atomic("pause") as vault:
            self._require_owner(vault, caller)
            state = lifecycle.pause_transition(vault.state)
            self._set_state(vault, state, constants.PAUSE_EVENT)

    def unpause(self, caller: str) -> None:
        with self._atomic("unpause") as vault:
            self._require_owner(vault, caller)
            state = lifecycle.unpause_transition(vault.state)
            # funds pulled out by panic go back to work
            idle = vault.idle_total
            if idle:
                self.adapters.farm.deploy(idle)
                vault.deployed_total += idle
            self._set_state(vault, state, constants.UNPAUSE_EVENT)

    def panic(self, caller: str) -> int:
        with self._atomic("panic") as vault:
            self._require_owner(vault, caller)
            state = lifecycle.panic_transition(vault.state)
            recalled = self._recall_everything(vault)
            self._set_state(vault, state, constants.PANIC_EVENT)
        return recalled

    def retire(self, caller: str) -> int:
        with self._atomic("retire") as vault:
            self._require_owner(vault, caller)
            state = lifecycle.retire_transition(vault.state)
            recalled = self._recall_everything(vault)
            self._set_state(vault, state, constants.RETIRE_EVENT)
        return recalled

    # -- governance --------------------------------------------------------

    def set_settings(self, caller: str, fee_settings: FeeSettings) -> FeeSettings:
        with self._atomic("set_settings") as vault:
            self._require_governance(vault, caller)
            fee_engine.validate_settings(fee_settings)
            for name, value in fee_settings.model_dump().items():
                setattr(vault, name, value)
            self.session.add(vault)
            record_event(
                self.session, vault.id, constants.SET_SETTINGS_EVENT, **fee_settings.model_dump()
            )
        return fee_settings

    def _set_role(self, caller: str, role: str, address: str, event: str) -> None:
        with self._atomic(f"set_{role}") as vault:
            self._require_governance(vault, caller)
            if is_zero_address(address):
                raise InvalidAddress(f"{role} cannot be the zero address")
            setattr(vault, role, address)
            self.session.add(vault)
            record_event(self.session, vault.id, event, address=address)

    def set_governance(self, caller: str, address: str) -> None:
        self._set_role(caller, "governance", address, constants.SET_GOVERNANCE_EVENT)

    def set_rewards(self, caller: str, address: str) -> None:
        self._set_role(caller, "rewards_address", address, constants.SET_REWARDS_EVENT)

    def set_treasury(self, caller: str, address: str) -> None:
        self._set_role(caller, "treasury_address", address, constants.SET_TREASURY_EVENT)

    def add_harvester(self, caller: str, address: str) -> None:
        with self._atomic("add_harvester") as vault:
            self._require_governance(vault, caller)
            if is_zero_address(address):
                raise InvalidAddress("harvester cannot be the zero address")
            if not self.is_harvester(address):
                self.session.add(VaultHarvester(vault_id=vault.id, address=address))
            record_event(self.session, vault.id, constants.ADD_HARVESTER_EVENT, address=address)

    def remove_harvester(self, caller: str, address: str) -> None:
        with self._atomic("remove_harvester") as vault:
            self._require_governance(vault, caller)
            if is_zero_address(address):
                raise InvalidAddress("harvester cannot be the zero address")
            harvesters = self.session.exec(
                select(VaultHarvester).where(VaultHarvester.vault_id == vault.id)
            ).all()
            for harvester in harvesters:
                if same_address(harvester.address, address):
                    self.session.delete(harvester)
            record_event(
                self.session, vault.id, constants.REMOVE_HARVESTER_EVENT, address=address
            )

    def recover_stuck_asset(self, caller: str, token: str, amount: int, to: str) -> None:
        with self._atomic("recover_stuck_asset") as vault:
            protected = [
                vault.deposit_asset,
                vault.want_asset,
                vault.reward_asset,
                vault.earned_asset,
            ]
            if any(asset and same_address(token, asset) for asset in protected):
                raise UnsafeRecovery(f"{token} is managed by {vault.slug}")
            self._require_governance(vault, caller)
            if is_zero_address(to):
                raise InvalidAddress("recovery destination is the zero address")

            self.adapters.bank.transfer(token, vault.contract_address, to, amount)
            record_event(
                self.session,
                vault.id,
                constants.RECOVER_STUCK_ASSET_EVENT,
                token=token,
                amount=amount,
                to=to,
            )

    # -- migration ---------------------------------------------------------

    def upgrade_to(self, caller: str, successor: Vault) -> MigrationSnapshot:
        """Retire this vault in favour of ``successor`` and hand over its ledger.

        Funds are pulled out of the farm into the custody account, where the
        successor's ``upgrade_from`` collects them.
        """
        with self._atomic("upgrade_to", successor) as vault:
            self._require_owner(vault, caller)
            if vault.successor_id is not None:
                raise InvalidMigration(f"{vault.slug} was already upgraded")
            migration.validate_successor(vault, successor)

            snapshot = migration.snapshot_of(vault)
            recalled = self.adapters.farm.recall(vault.deployed_total)
            vault.deployed_total -= recalled
            # the successor pulls the funds out of this custody account
            bank = self.adapters.bank
            bank.approve(
                vault.deposit_asset,
                vault.contract_address,
                successor.contract_address,
                snapshot.deposit_amount,
            )
            if snapshot.want_amount:
                bank.approve(
                    vault.want_asset,
                    vault.contract_address,
                    successor.contract_address,
                    snapshot.want_amount,
                )
            vault.successor_id = successor.id
            if vault.state != LifecycleState.retired:
                self._set_state(vault, LifecycleState.retired, constants.RETIRE_EVENT)
            self.session.add(vault)
            record_event(
                self.session,
                vault.id,
                constants.UPGRADE_TO_EVENT,
                successor=successor.id,
                **snapshot.model_dump(),
            )
            logger.info("Vault %s upgraded to %s with %s", vault.slug, successor.slug, snapshot)
        return snapshot

    def upgrade_from(
        self, caller: str, predecessor: Vault, snapshot: MigrationSnapshot
    ) -> None:
        with self._atomic("upgrade_from", predecessor) as vault:
            self._require_owner(vault, caller)
            migration.validate_incoming(predecessor, vault, snapshot)

            bank = self.adapters.bank
            bank.transfer(
                vault.deposit_asset,
                predecessor.contract_address,
                vault.contract_address,
                snapshot.deposit_amount,
            )
            if snapshot.want_amount:
                bank.transfer(
                    vault.want_asset,
                    predecessor.contract_address,
                    vault.contract_address,
                    snapshot.want_amount,
                )

            predecessor.shares_total = 0
            predecessor.deposit_total = 0
            predecessor.want_total = 0
            predecessor.deployed_total = 0
            self.session.add(predecessor)

            vault.shares_total = snapshot.shares
            vault.deposit_total = snapshot.deposit_amount
            vault.want_total = snapshot.want_amount
            vault.predecessor_id = predecessor.id
            if vault.state == LifecycleState.active:
                self.adapters.farm.deploy(snapshot.deposit_amount)
                vault.deployed_total = snapshot.deposit_amount
            self.session.add(vault)

            record_event(
                self.session,
                vault.id,
                constants.UPGRADE_FROM_EVENT,
                predecessor=predecessor.id,
                **snapshot.model_dump(),
            )
            record_price_per_share(self.session, vault)
            logger.info(
                "Vault %s took over the ledger of %s: %s", vault.slug, predecessor.slug, snapshot
            )
