from datetime import datetime, timezone
import enum
import json
import uuid

import sqlmodel

from models.types import amount_column


class VaultVariant(str, enum.Enum):
    single_asset = "single_asset"
    two_asset = "two_asset"


class LifecycleState(str, enum.Enum):
    active = "active"
    paused = "paused"
    retired = "retired"


# create network enum: Ethereum, BSC, ArbitrumOne, Base
class NetworkChain(str, enum.Enum):
    ethereum = "ethereum"
    bsc = "bsc"
    arbitrum_one = "arbitrum_one"
    base = "base"


class VaultBase(sqlmodel.SQLModel):
    id: uuid.UUID = sqlmodel.Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    slug: str = sqlmodel.Field(index=True, unique=True)
    contract_address: str
    network_chain: NetworkChain = sqlmodel.Field(default=NetworkChain.bsc)
    variant: VaultVariant = sqlmodel.Field(default=VaultVariant.single_asset)

    deposit_asset: str
    want_asset: str | None = None
    earned_asset: str
    reward_asset: str

    # JSON encoded address lists, e.g. '["0xCAKE", "0xWBNB", "0xBALLE"]'
    earned_to_reward_path: str = "[]"
    earned_to_deposit_path: str = "[]"
    earned_to_want_path: str = "[]"

    farm_address: str | None = None
    farm_pid: int = 0
    router_address: str | None = None

    owner: str
    governance: str
    rewards_address: str
    treasury_address: str

    entrance_fee: int
    performance_fee: int
    rewards_fee_factor: int
    treasury_fee_factor: int
    slippage: int

    state: LifecycleState = sqlmodel.Field(default=LifecycleState.active)

    predecessor_id: uuid.UUID | None = None
    successor_id: uuid.UUID | None = None
    created_at: datetime = sqlmodel.Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )


# Database model, database table inferred from class name
class Vault(VaultBase, table=True):
    __tablename__ = "vaults"

    deposit_total: int = sqlmodel.Field(default=0, sa_column=amount_column())
    shares_total: int = sqlmodel.Field(default=0, sa_column=amount_column())
    want_total: int = sqlmodel.Field(default=0, sa_column=amount_column())
    # principal currently sitting in the farm; the rest of deposit_total
    # is held by the vault's custody account
    deployed_total: int = sqlmodel.Field(default=0, sa_column=amount_column())

    @property
    def is_two_asset(self) -> bool:
        return self.variant == VaultVariant.two_asset

    @property
    def idle_total(self) -> int:
        return max(self.deposit_total - self.deployed_total, 0)

    def swap_path(self, name: str) -> list[str]:
        return json.loads(getattr(self, f"earned_to_{name}_path") or "[]")
