import json
import logging
from typing import List

from sqlmodel import Session, select

import schemas
from core.config import settings
from core.exceptions import InvalidAddress, VaultError, VaultNotFound
from models.vault_harvester import VaultHarvester
from models.vaults import Vault, VaultVariant
from services.fee_engine import validate_settings
from services.performance import calculate_apy_7d
from services.vault_ledger import price_per_share
from utils.api import is_zero_address, normalize_address

logger = logging.getLogger(__name__)


def default_fee_settings() -> schemas.FeeSettings:
    return schemas.FeeSettings(
        entrance_fee=settings.VAULT_DEFAULT_ENTRANCE_FEE,
        performance_fee=settings.VAULT_DEFAULT_PERFORMANCE_FEE,
        rewards_fee_factor=settings.VAULT_DEFAULT_REWARDS_FEE_FACTOR,
        treasury_fee_factor=settings.VAULT_DEFAULT_TREASURY_FEE_FACTOR,
        slippage=settings.VAULT_DEFAULT_SLIPPAGE,
    )


def create_vault(session: Session, vault_in: schemas.VaultCreate) -> Vault:
    for role in ("owner", "governance", "rewards_address", "treasury_address"):
        if is_zero_address(getattr(vault_in, role)):
            raise InvalidAddress(f"{role} cannot be the zero address")
    if vault_in.variant == VaultVariant.two_asset and not vault_in.want_asset:
        raise VaultError("a two-asset vault needs a want asset")
    if session.exec(select(Vault).where(Vault.slug == vault_in.slug)).first():
        raise VaultError(f"vault {vault_in.slug} already exists")

    fee_settings = validate_settings(vault_in.settings or default_fee_settings())

    data = vault_in.model_dump(exclude={"settings", "harvesters"})
    for role in ("owner", "governance", "rewards_address", "treasury_address"):
        data[role] = normalize_address(data[role])
    for name in ("reward", "deposit", "want"):
        key = f"earned_to_{name}_path"
        data[key] = json.dumps(data[key])
    vault = Vault(**data, **fee_settings.model_dump())
    session.add(vault)
    for address in {normalize_address(a) for a in vault_in.harvesters}:
        session.add(VaultHarvester(vault_id=vault.id, address=address))
    session.commit()
    session.refresh(vault)

    logger.info(
        "Registered vault %s (%s) at %s", vault.slug, vault.variant.value, vault.contract_address
    )
    return vault


def get_vault_by_slug(session: Session, slug: str) -> Vault:
    vault = session.exec(select(Vault).where(Vault.slug == slug)).first()
    if vault is None:
        raise VaultNotFound(f"vault {slug} not found")
    return vault


def get_harvesters(session: Session, vault: Vault) -> List[str]:
    return session.exec(
        select(VaultHarvester.address).where(VaultHarvester.vault_id == vault.id)
    ).all()


def to_schema(
    session: Session, vault: Vault, pending_yield: int | None = None
) -> schemas.Vault:
    return schemas.Vault(
        **schemas.VaultBase.model_validate(vault, from_attributes=True).model_dump(),
        ledger=schemas.VaultState.model_validate(vault),
        settings=schemas.FeeSettings.model_validate(vault),
        harvesters=get_harvesters(session, vault),
        price_per_share=price_per_share(vault.deposit_total, vault.shares_total),
        apy_7d=calculate_apy_7d(session, vault),
        pending_yield=pending_yield,
    )
