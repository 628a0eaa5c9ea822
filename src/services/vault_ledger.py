"""Share accounting for a vault.

Every conversion floors, so rounding dust always stays with the vault:
a depositor never receives more shares than the pre-deposit rate pays for,
and a withdrawal never pays out more than the burned shares are worth.
"""
from typing import NamedTuple

from core.constants import BPS_DENOMINATOR
from core.exceptions import InvalidAmount


class WithdrawResult(NamedTuple):
    shares: int
    deposit_amount: int
    want_amount: int


def credited_amount(amount: int, entrance_fee: int) -> int:
    """Part of a deposit credited as value once the entrance fee is taken."""
    if entrance_fee >= BPS_DENOMINATOR:
        return amount
    return amount * entrance_fee // BPS_DENOMINATOR


def shares_for_deposit(credited: int, deposit_total: int, shares_total: int) -> int:
    # first depositor sets the 1:1 rate
    if shares_total == 0 or deposit_total == 0:
        return credited
    return credited * shares_total // deposit_total


def withdraw_split(
    amount: int, deposit_total: int, shares_total: int, want_total: int = 0
) -> WithdrawResult:
    """Shares burned and assets paid for redeeming ``amount`` of deposit asset.

    ``amount`` above ``deposit_total`` is clamped to the whole vault.
    """
    if amount <= 0:
        raise InvalidAmount("withdraw amount must be positive")
    if shares_total == 0 or deposit_total == 0:
        raise InvalidAmount("vault has nothing to withdraw")

    amount = min(amount, deposit_total)
    shares = amount * shares_total // deposit_total
    if shares == 0:
        raise InvalidAmount(f"withdraw amount {amount} is worth less than one share")

    deposit_amount = shares * deposit_total // shares_total
    want_amount = shares * want_total // shares_total
    return WithdrawResult(shares, deposit_amount, want_amount)


def price_per_share(deposit_total: int, shares_total: int) -> float:
    if shares_total == 0:
        return 1.0
    return deposit_total / shares_total
