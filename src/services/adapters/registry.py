from web3 import Web3

from core.config import settings
from models.vaults import Vault
from services.adapters.base import VaultAdapters
from services.adapters.memory import (
    MemoryAssetBank,
    MemoryChain,
    MemoryFarm,
    MemoryRouter,
    default_chain,
)
from services.adapters.web3_adapters import (
    Erc20AssetBank,
    MasterChefFarm,
    UniswapV2Router,
    Web3Journal,
)


def farm_address_of(vault: Vault) -> str:
    return vault.farm_address or f"farm:{vault.slug}"


def build_memory_adapters(vault: Vault, chain: MemoryChain | None = None) -> VaultAdapters:
    chain = chain or default_chain
    return VaultAdapters(
        farm=MemoryFarm(
            chain,
            account=vault.contract_address,
            farm_address=farm_address_of(vault),
            deposit_asset=vault.deposit_asset,
            earned_asset=vault.earned_asset,
        ),
        swap=MemoryRouter(chain, account=vault.contract_address),
        bank=MemoryAssetBank(chain),
    )


def build_web3_adapters(vault: Vault) -> VaultAdapters:
    if not settings.BSC_MAINNET_RPC_URL or not settings.OPERATION_ADMIN_WALLET_PRIVATE_KEY:
        raise RuntimeError("web3 adapters need BSC_MAINNET_RPC_URL and an operation wallet key")
    if vault.farm_address is None or vault.router_address is None:
        raise RuntimeError(f"vault {vault.slug} has no farm or router address")

    w3 = Web3(Web3.HTTPProvider(settings.BSC_MAINNET_RPC_URL))
    private_key = settings.OPERATION_ADMIN_WALLET_PRIVATE_KEY
    # the three adapters undo into one journal
    journal = Web3Journal()
    return VaultAdapters(
        farm=MasterChefFarm(
            w3,
            vault.contract_address,
            private_key,
            farm_address=vault.farm_address,
            pid=vault.farm_pid,
            deposit_asset=vault.deposit_asset,
            earned_asset=vault.earned_asset,
            journal=journal,
        ),
        swap=UniswapV2Router(
            w3, vault.contract_address, private_key, vault.router_address, journal=journal
        ),
        bank=Erc20AssetBank(w3, vault.contract_address, private_key, journal=journal),
    )


def build_adapters(vault: Vault) -> VaultAdapters:
    if settings.ADAPTER_BACKEND == "web3":
        return build_web3_adapters(vault)
    return build_memory_adapters(vault)
