from typing import NamedTuple, Protocol, Sequence


class Savepoint(Protocol):
    def rollback(self) -> None: ...

    def release(self) -> None: ...


class FarmAdapter(Protocol):
    """Yield source bound to one vault's custody account."""

    def deploy(self, amount: int) -> None: ...

    def recall(self, amount: int) -> int: ...

    def emergency_recall_all(self) -> int: ...

    def claimable_yield(self) -> int: ...

    def claim(self) -> int: ...

    def savepoint(self) -> Savepoint: ...


class SwapAdapter(Protocol):
    """Router swapping out of and back into the vault's custody account."""

    def quote(self, path: Sequence[str], amount_in: int) -> int: ...

    def swap_exact_in(
        self, path: Sequence[str], amount_in: int, min_amount_out: int
    ) -> int: ...

    def savepoint(self) -> Savepoint: ...


class AssetBank(Protocol):
    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None: ...

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None: ...

    def balance_of(self, asset: str, holder: str) -> int: ...

    def savepoint(self) -> Savepoint: ...


class VaultAdapters(NamedTuple):
    farm: FarmAdapter
    swap: SwapAdapter
    bank: AssetBank

    def savepoints(self) -> list:
        return [self.farm.savepoint(), self.swap.savepoint(), self.bank.savepoint()]
