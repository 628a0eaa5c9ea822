"""In-process stand-ins for the token, farm and router contracts.

All adapters built on the same :class:`MemoryChain` share one balance sheet.
A savepoint journals the changes made on its own thread, so rolling it back
undoes one operation without touching what other vaults did meanwhile.
"""
import logging
import threading
from collections import defaultdict
from fractions import Fraction
from typing import Sequence

from core.constants import BPS_DENOMINATOR
from core.exceptions import InsufficientBalance, SlippageExceeded

logger = logging.getLogger(__name__)


def _key(*parts: str) -> tuple:
    return tuple(p.lower() for p in parts)


class MemorySavepoint:
    """Undo log of the chain changes made on the opening thread."""

    def __init__(self, chain: "MemoryChain"):
        self.chain = chain
        self.entries: list = []
        chain._open_savepoints().append(self)

    def _close(self) -> list:
        stack = self.chain._open_savepoints()
        stack.remove(self)
        return stack

    def rollback(self) -> None:
        with self.chain._lock:
            for table, key, delta in reversed(self.entries):
                table[key] -= delta
        self.entries = []
        self._close()

    def release(self) -> None:
        stack = self._close()
        if stack:
            stack[-1].entries.extend(self.entries)
        self.entries = []


class MemoryChain:
    def __init__(self):
        self._lock = threading.RLock()
        self._local = threading.local()
        self.balances: dict = defaultdict(int)
        self.allowances: dict = defaultdict(int)
        self.farm_stakes: dict = defaultdict(int)
        self.farm_pending: dict = defaultdict(int)
        self.rates: dict = {}

    def set_rate(self, token_in: str, token_out: str, numerator: int, denominator: int = 1):
        self.rates[_key(token_in, token_out)] = Fraction(numerator, denominator)

    def _open_savepoints(self) -> list:
        stack = getattr(self._local, "savepoints", None)
        if stack is None:
            stack = self._local.savepoints = []
        return stack

    def adjust(self, table: dict, key: tuple, delta: int) -> None:
        with self._lock:
            table[key] += delta
            stack = self._open_savepoints()
            if stack:
                stack[-1].entries.append((table, key, delta))

    def savepoint(self) -> MemorySavepoint:
        return MemorySavepoint(self)

    def balance_of(self, asset: str, holder: str) -> int:
        return self.balances.get(_key(asset, holder), 0)

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        return self.allowances.get(_key(asset, owner, spender), 0)

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        with self._lock:
            key = _key(asset, owner, spender)
            self.adjust(self.allowances, key, amount - self.allowances.get(key, 0))

    def mint(self, asset: str, holder: str, amount: int) -> None:
        self.adjust(self.balances, _key(asset, holder), amount)

    def burn(self, asset: str, holder: str, amount: int) -> None:
        with self._lock:
            self._debit(asset, holder, amount)

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        with self._lock:
            self._debit(asset, sender, amount)
            self.adjust(self.balances, _key(asset, recipient), amount)

    def _debit(self, asset: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"negative amount {amount}")
        balance = self.balances.get(_key(asset, holder), 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{holder} holds {balance} {asset}, needs {amount}"
            )
        self.adjust(self.balances, _key(asset, holder), -amount)


class MemoryAssetBank:
    def __init__(self, chain: MemoryChain):
        self.chain = chain

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount == 0:
            return
        self.chain.transfer(asset, sender, recipient, amount)

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        self.chain.approve(asset, owner, spender, amount)

    def balance_of(self, asset: str, holder: str) -> int:
        return self.chain.balance_of(asset, holder)

    def savepoint(self) -> MemorySavepoint:
        return self.chain.savepoint()


class MemoryFarm:
    """MasterChef-like pool: stakes the deposit asset, pays the earned asset."""

    def __init__(
        self,
        chain: MemoryChain,
        account: str,
        farm_address: str,
        deposit_asset: str,
        earned_asset: str,
    ):
        self.chain = chain
        self.account = account
        self.farm_address = farm_address
        self.deposit_asset = deposit_asset
        self.earned_asset = earned_asset

    @property
    def _position(self) -> tuple:
        return _key(self.farm_address, self.account)

    @property
    def staked(self) -> int:
        return self.chain.farm_stakes.get(self._position, 0)

    def accrue(self, amount: int) -> None:
        """Credit ``amount`` of earned asset as pending yield for the account."""
        with self.chain._lock:
            self.chain.mint(self.earned_asset, self.farm_address, amount)
            self.chain.adjust(self.chain.farm_pending, self._position, amount)

    def deploy(self, amount: int) -> None:
        if amount == 0:
            return
        with self.chain._lock:
            self.chain.transfer(self.deposit_asset, self.account, self.farm_address, amount)
            self.chain.adjust(self.chain.farm_stakes, self._position, amount)

    def recall(self, amount: int) -> int:
        with self.chain._lock:
            amount = min(amount, self.staked)
            if amount == 0:
                return 0
            self.chain.transfer(self.deposit_asset, self.farm_address, self.account, amount)
            self.chain.adjust(self.chain.farm_stakes, self._position, -amount)
        return amount

    def emergency_recall_all(self) -> int:
        with self.chain._lock:
            # like MasterChef.emergencyWithdraw, pending rewards are forfeited
            self.chain.adjust(self.chain.farm_pending, self._position, -self.claimable_yield())
            return self.recall(self.staked)

    def claimable_yield(self) -> int:
        return self.chain.farm_pending.get(self._position, 0)

    def claim(self) -> int:
        with self.chain._lock:
            pending = self.claimable_yield()
            if pending == 0:
                return 0
            self.chain.transfer(self.earned_asset, self.farm_address, self.account, pending)
            self.chain.adjust(self.chain.farm_pending, self._position, -pending)
        return pending

    def savepoint(self) -> MemorySavepoint:
        return self.chain.savepoint()


class MemoryRouter:
    """Fixed-rate router; output is minted to the caller instead of drawn from a pool.

    ``haircut_bps`` makes the executed amount fall short of the quote, which
    is how price impact between quote and execution is simulated.
    """

    def __init__(self, chain: MemoryChain, account: str, haircut_bps: int = 0):
        self.chain = chain
        self.account = account
        self.haircut_bps = haircut_bps

    def quote(self, path: Sequence[str], amount_in: int) -> int:
        if len(path) < 2:
            raise ValueError(f"swap path needs at least two assets: {path}")
        amount = amount_in
        for token_in, token_out in zip(path, path[1:]):
            rate = self.chain.rates.get(_key(token_in, token_out), Fraction(1))
            amount = int(amount * rate.numerator // rate.denominator)
        return amount

    def swap_exact_in(self, path: Sequence[str], amount_in: int, min_amount_out: int) -> int:
        amount_out = (
            self.quote(path, amount_in) * (BPS_DENOMINATOR - self.haircut_bps) // BPS_DENOMINATOR
        )
        if amount_out < min_amount_out:
            raise SlippageExceeded(
                f"swap {path[0]} -> {path[-1]} returns {amount_out}, minimum {min_amount_out}"
            )
        self.chain.burn(path[0], self.account, amount_in)
        self.chain.mint(path[-1], self.account, amount_out)
        logger.debug("Swapped %s %s for %s %s", amount_in, path[0], amount_out, path[-1])
        return amount_out

    def savepoint(self) -> MemorySavepoint:
        return self.chain.savepoint()


default_chain = MemoryChain()
