from typing import List
import uuid
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from models.vaults import LifecycleState, NetworkChain, VaultVariant
from .fee_info import FeeSettings
from .vault_state import VaultState


class VaultCreate(BaseModel):
    name: str
    slug: str
    contract_address: str
    network_chain: NetworkChain = NetworkChain.bsc
    variant: VaultVariant = VaultVariant.single_asset

    deposit_asset: str
    want_asset: str | None = None
    earned_asset: str
    reward_asset: str

    earned_to_reward_path: List[str] = []
    earned_to_deposit_path: List[str] = []
    earned_to_want_path: List[str] = []

    farm_address: str | None = None
    farm_pid: int = 0
    router_address: str | None = None

    owner: str
    governance: str
    rewards_address: str
    treasury_address: str
    harvesters: List[str] = []

    # falls back to the configured defaults
    settings: FeeSettings | None = None


class VaultBase(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    contract_address: str
    network_chain: NetworkChain
    variant: VaultVariant
    state: LifecycleState
    deposit_asset: str
    want_asset: str | None = None
    earned_asset: str
    reward_asset: str
    owner: str
    governance: str
    rewards_address: str
    treasury_address: str
    predecessor_id: uuid.UUID | None = None
    successor_id: uuid.UUID | None = None
    created_at: datetime | None = None


# Properties shared by models stored in DB
class VaultInDBBase(VaultBase):
    model_config = ConfigDict(from_attributes=True)


# Properties to return to client
class Vault(VaultInDBBase):
    ledger: VaultState
    settings: FeeSettings
    harvesters: List[str] = []
    price_per_share: float | None = None
    apy_7d: float | None = None
    pending_yield: int | None = Field(default=None)
