from typing import NamedTuple

from core.constants import (
    BPS_DENOMINATOR,
    ENTRANCE_FEE_LL,
    ENTRANCE_FEE_MAX,
    FEE_FACTOR_DENOMINATOR,
    PERFORMANCE_FEE_UL,
    SLIPPAGE_UL,
)
from core.exceptions import SettingsOutOfBounds
from schemas.fee_info import FeeSettings


class HarvestResult(NamedTuple):
    harvested: int
    to_rewards: int
    to_treasury: int
    reinvested: int = 0


def validate_settings(fee_settings: FeeSettings) -> FeeSettings:
    if fee_settings.entrance_fee <= ENTRANCE_FEE_LL:
        raise SettingsOutOfBounds(
            f"entrance_fee {fee_settings.entrance_fee} must be above {ENTRANCE_FEE_LL}"
        )
    if fee_settings.entrance_fee > ENTRANCE_FEE_MAX:
        raise SettingsOutOfBounds(
            f"entrance_fee {fee_settings.entrance_fee} must not exceed {ENTRANCE_FEE_MAX}"
        )
    if not 0 <= fee_settings.performance_fee <= PERFORMANCE_FEE_UL:
        raise SettingsOutOfBounds(
            f"performance_fee {fee_settings.performance_fee} must be within 0..{PERFORMANCE_FEE_UL}"
        )
    if fee_settings.rewards_fee_factor < 0 or fee_settings.treasury_fee_factor < 0:
        raise SettingsOutOfBounds("fee factors must not be negative")
    if (
        fee_settings.rewards_fee_factor + fee_settings.treasury_fee_factor
        != FEE_FACTOR_DENOMINATOR
    ):
        raise SettingsOutOfBounds(
            f"rewards_fee_factor + treasury_fee_factor must equal {FEE_FACTOR_DENOMINATOR}"
        )
    if not 0 <= fee_settings.slippage <= SLIPPAGE_UL:
        raise SettingsOutOfBounds(
            f"slippage {fee_settings.slippage} must be within 0..{SLIPPAGE_UL}"
        )
    return fee_settings


def performance_fee_of(harvested: int, performance_fee: int) -> int:
    return harvested * performance_fee // BPS_DENOMINATOR


def split_fee(fee_amount: int, rewards_fee_factor: int) -> tuple[int, int]:
    """(to_rewards, to_treasury); the floor remainder goes to the treasury."""
    to_rewards = fee_amount * rewards_fee_factor // FEE_FACTOR_DENOMINATOR
    return to_rewards, fee_amount - to_rewards


def min_amount_out(quoted: int, slippage: int) -> int:
    return quoted * (BPS_DENOMINATOR - slippage) // BPS_DENOMINATOR
