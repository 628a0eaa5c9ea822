import logging
import time
from typing import Callable, Optional, Sequence

from web3 import Web3
from web3.contract import Contract

from core.abi_reader import read_abi
from core.exceptions import SlippageExceeded
from utils.web3_utils import sign_and_send_transaction

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


class Web3Journal:
    """Transactions sent for one vault, with the transaction that undoes each.

    On-chain transactions cannot be reverted once mined, so rolling back sends
    the compensating transactions in reverse order. Steps without one (claims,
    swaps) leave their output in custody; the next harvest picks it up.
    """

    def __init__(self):
        self.entries: list[tuple[str, Optional[Callable[[], None]]]] = []

    def record(self, step: str, undo: Optional[Callable[[], None]] = None) -> None:
        self.entries.append((step, undo))

    def savepoint(self) -> "Web3Savepoint":
        return Web3Savepoint(self, len(self.entries))


class Web3Savepoint:
    def __init__(self, journal: Web3Journal, mark: int):
        self.journal = journal
        self.mark = mark

    def rollback(self) -> None:
        entries = self.journal.entries
        while len(entries) > self.mark:
            step, undo = entries.pop()
            if undo is None:
                logger.warning("Cannot undo %s; its output stays in custody", step)
                continue
            try:
                undo()
                logger.info("Undid %s", step)
            except Exception as e:
                logger.error("Failed to undo %s: %s", step, e, exc_info=True)

    def release(self) -> None:
        del self.journal.entries[self.mark:]


class _Web3Account:
    def __init__(
        self,
        w3: Web3,
        account: str,
        private_key: str,
        journal: Optional[Web3Journal] = None,
    ):
        self.w3 = w3
        self.account = Web3.to_checksum_address(account)
        self.private_key = private_key
        self.journal = journal or Web3Journal()

    def contract(self, address: str, abi_name: str) -> Contract:
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=read_abi(abi_name)
        )

    def send(self, function, *args):
        receipt = sign_and_send_transaction(
            self.w3, function, args, self.account, self.private_key
        )
        if receipt["status"] != 1:
            raise RuntimeError(f"transaction {receipt['transactionHash'].hex()} reverted")
        return receipt

    def token_balance(self, asset: str, holder: str | None = None) -> int:
        token = self.contract(asset, "ERC20")
        return token.functions.balanceOf(
            Web3.to_checksum_address(holder or self.account)
        ).call()

    def ensure_allowance(self, asset: str, spender: str, amount: int) -> None:
        token = self.contract(asset, "ERC20")
        spender = Web3.to_checksum_address(spender)
        if token.functions.allowance(self.account, spender).call() < amount:
            self.send(token.functions.approve, spender, MAX_UINT256)

    def savepoint(self) -> Web3Savepoint:
        return self.journal.savepoint()


class Erc20AssetBank(_Web3Account):
    def _transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        token = self.contract(asset, "ERC20")
        recipient = Web3.to_checksum_address(recipient)
        if Web3.to_checksum_address(sender) == self.account:
            self.send(token.functions.transfer, recipient, amount)
        else:
            self.send(
                token.functions.transferFrom,
                Web3.to_checksum_address(sender),
                recipient,
                amount,
            )

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount == 0:
            return
        self._transfer(asset, sender, recipient, amount)
        step = f"transfer of {amount} {asset} from {sender} to {recipient}"
        if Web3.to_checksum_address(recipient) == self.account:
            # funds pulled into custody can be handed back
            self.journal.record(step, lambda: self._transfer(asset, recipient, sender, amount))
        else:
            self.journal.record(step)

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        if Web3.to_checksum_address(owner) != self.account:
            raise ValueError(f"{self.account} cannot approve on behalf of {owner}")
        token = self.contract(asset, "ERC20")
        spender = Web3.to_checksum_address(spender)
        previous = token.functions.allowance(self.account, spender).call()
        self.send(token.functions.approve, spender, amount)
        self.journal.record(
            f"approval of {amount} {asset} to {spender}",
            lambda: self.send(token.functions.approve, spender, previous),
        )

    def balance_of(self, asset: str, holder: str) -> int:
        return self.token_balance(asset, holder)


class MasterChefFarm(_Web3Account):
    def __init__(
        self,
        w3: Web3,
        account: str,
        private_key: str,
        farm_address: str,
        pid: int,
        deposit_asset: str,
        earned_asset: str,
        journal: Optional[Web3Journal] = None,
    ):
        super().__init__(w3, account, private_key, journal)
        self.farm = self.contract(farm_address, "MasterChef")
        self.pid = pid
        self.deposit_asset = deposit_asset
        self.earned_asset = earned_asset

    def staked(self) -> int:
        amount, _ = self.farm.functions.userInfo(self.pid, self.account).call()
        return amount

    def _deploy(self, amount: int) -> None:
        self.ensure_allowance(self.deposit_asset, self.farm.address, amount)
        self.send(self.farm.functions.deposit, self.pid, amount)

    def _withdraw(self, amount: int) -> int:
        before = self.token_balance(self.deposit_asset)
        self.send(self.farm.functions.withdraw, self.pid, amount)
        return self.token_balance(self.deposit_asset) - before

    def deploy(self, amount: int) -> None:
        if amount == 0:
            return
        self._deploy(amount)
        self.journal.record(f"farm deposit of {amount}", lambda: self._withdraw(amount))

    def recall(self, amount: int) -> int:
        amount = min(amount, self.staked())
        if amount == 0:
            return 0
        recalled = self._withdraw(amount)
        self.journal.record(f"farm withdrawal of {amount}", lambda: self._deploy(recalled))
        return recalled

    def emergency_recall_all(self) -> int:
        before = self.token_balance(self.deposit_asset)
        self.send(self.farm.functions.emergencyWithdraw, self.pid)
        recalled = self.token_balance(self.deposit_asset) - before
        self.journal.record(f"emergency withdrawal of {recalled}", lambda: self._deploy(recalled))
        return recalled

    def claimable_yield(self) -> int:
        return self.farm.functions.pendingCake(self.pid, self.account).call()

    def claim(self) -> int:
        before = self.token_balance(self.earned_asset)
        # depositing zero harvests the pending rewards
        self.send(self.farm.functions.deposit, self.pid, 0)
        claimed = self.token_balance(self.earned_asset) - before
        self.journal.record(f"claim of {claimed} {self.earned_asset}")
        return claimed


class UniswapV2Router(_Web3Account):
    def __init__(
        self,
        w3: Web3,
        account: str,
        private_key: str,
        router_address: str,
        deadline_seconds: int = 60,
        journal: Optional[Web3Journal] = None,
    ):
        super().__init__(w3, account, private_key, journal)
        self.router = self.contract(router_address, "UniswapV2Router")
        self.deadline_seconds = deadline_seconds

    def quote(self, path: Sequence[str], amount_in: int) -> int:
        path = [Web3.to_checksum_address(p) for p in path]
        amounts = self.router.functions.getAmountsOut(amount_in, path).call()
        return amounts[-1]

    def swap_exact_in(self, path: Sequence[str], amount_in: int, min_amount_out: int) -> int:
        path = [Web3.to_checksum_address(p) for p in path]
        quoted = self.quote(path, amount_in)
        if quoted < min_amount_out:
            raise SlippageExceeded(
                f"router quotes {quoted} {path[-1]}, minimum {min_amount_out}"
            )
        self.ensure_allowance(path[0], self.router.address, amount_in)
        before = self.token_balance(path[-1])
        try:
            self.send(
                self.router.functions.swapExactTokensForTokens,
                amount_in,
                min_amount_out,
                path,
                self.account,
                int(time.time()) + self.deadline_seconds,
            )
        except RuntimeError as e:
            raise SlippageExceeded(str(e)) from e
        amount_out = self.token_balance(path[-1]) - before
        self.journal.record(f"swap of {amount_in} {path[0]} for {amount_out} {path[-1]}")
        logger.info("Swapped %s %s for %s %s", amount_in, path[0], amount_out, path[-1])
        return amount_out
