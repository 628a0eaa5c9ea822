from .fee_info import FeeSettings
from .vault_state import VaultState
from .vault import Vault, VaultBase, VaultCreate
from .operations import (
    AddressRequest,
    DepositRequest,
    DepositResponse,
    HarvestResponse,
    MigrationSnapshot,
    PendingYieldResponse,
    RecoverRequest,
    UpgradeFromRequest,
    UpgradeToRequest,
    WithdrawRequest,
    WithdrawResponse,
)
