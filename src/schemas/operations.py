from pydantic import BaseModel, Field


class DepositRequest(BaseModel):
    user: str
    amount: int = Field(ge=0)


class DepositResponse(BaseModel):
    shares: int


class WithdrawRequest(BaseModel):
    user: str
    amount: int = Field(ge=0)


class WithdrawResponse(BaseModel):
    shares: int
    deposit_amount: int
    want_amount: int


class HarvestResponse(BaseModel):
    harvested: int
    to_rewards: int
    to_treasury: int
    reinvested: int


class PendingYieldResponse(BaseModel):
    pending_yield: int


class AddressRequest(BaseModel):
    address: str


class RecoverRequest(BaseModel):
    token: str
    amount: int = Field(ge=0)
    to: str


class UpgradeToRequest(BaseModel):
    successor_slug: str


class MigrationSnapshot(BaseModel):
    shares: int
    deposit_amount: int
    want_amount: int


class UpgradeFromRequest(MigrationSnapshot):
    predecessor_slug: str
