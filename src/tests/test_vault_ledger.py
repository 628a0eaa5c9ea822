import pytest

from core.exceptions import InvalidAmount
from services.vault_ledger import (
    credited_amount,
    price_per_share,
    shares_for_deposit,
    withdraw_split,
)


def test_first_deposit_sets_one_to_one_rate():
    assert shares_for_deposit(100, 0, 0) == 100
    # a ledger with shares but no value also bootstraps
    assert shares_for_deposit(100, 0, 50) == 100


def test_deposit_uses_pre_deposit_ratio():
    assert shares_for_deposit(100, 505, 500) == 99
    assert shares_for_deposit(1010, 505, 500) == 1000


def test_entrance_fee_is_kept_out_of_credit():
    assert credited_amount(100 * 10**18, 10000) == 100 * 10**18
    assert credited_amount(100 * 10**18, 9990) == 999 * 10**17
    # floors toward the vault
    assert credited_amount(7, 9990) == 6


def test_withdraw_split_two_asset():
    assert withdraw_split(100, 500, 500, 5) == (100, 100, 1)


def test_withdraw_split_clamps_to_deposit_total():
    assert withdraw_split(10_000, 500, 500) == (500, 500, 0)


def test_withdraw_split_rounds_toward_vault():
    # 3 units of a 10/7 vault burn 2 shares worth 2 units
    shares, deposit_amount, _ = withdraw_split(3, 10, 7)
    assert shares == 2
    assert deposit_amount == 2


@pytest.mark.parametrize(
    "amount, deposit_total, shares_total",
    [(0, 500, 500), (100, 0, 0), (1, 1000, 10)],
)
def test_withdraw_split_rejects(amount, deposit_total, shares_total):
    with pytest.raises(InvalidAmount):
        withdraw_split(amount, deposit_total, shares_total)


def test_proportional_round_trip_loses_at_most_one_unit():
    deposit_total, shares_total = 1_000_003, 999_989
    for d in (1, 17, 12_345, 999_999):
        shares = shares_for_deposit(d, deposit_total, shares_total)
        new_d, new_s = deposit_total + d, shares_total + shares
        back = shares * new_d // new_s
        assert d - 1 <= back <= d + 1


def test_price_per_share():
    assert price_per_share(0, 0) == 1.0
    assert price_per_share(505, 500) == pytest.approx(1.01)
