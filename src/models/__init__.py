from .vaults import LifecycleState, NetworkChain, Vault, VaultBase, VaultVariant
from .vault_harvester import VaultHarvester
from .vault_event import VaultEvent
from .pps_history import PricePerShareHistory, PricePerShareHistoryBase
