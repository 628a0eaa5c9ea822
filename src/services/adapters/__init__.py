from .base import AssetBank, FarmAdapter, Savepoint, SwapAdapter, VaultAdapters
from .memory import MemoryAssetBank, MemoryChain, MemoryFarm, MemoryRouter, default_chain
from .registry import build_adapters, build_memory_adapters
