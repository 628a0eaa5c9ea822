from pydantic import BaseModel, ConfigDict


class FeeSettings(BaseModel):
    """Fee configuration of one vault.

    ``entrance_fee``, ``performance_fee`` and ``slippage`` are basis points
    (denominator 10000); the two fee factors are per-mille (denominator 1000)
    and split the performance fee between the rewards and treasury sinks.
    """

    model_config = ConfigDict(from_attributes=True)

    entrance_fee: int
    performance_fee: int
    rewards_fee_factor: int
    treasury_fee_factor: int
    slippage: int
