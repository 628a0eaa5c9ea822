from typing import List

from fastapi import APIRouter
from sqlmodel import select

import schemas
from api.api_v1.deps import CallerDep, EngineDep, SessionDep
from models import Vault
from models.vaults import LifecycleState
from services import vault_service
from services.performance import price_per_share_frame

router = APIRouter()


@router.post("/", response_model=schemas.Vault, status_code=201)
def create_vault(session: SessionDep, vault_in: schemas.VaultCreate):
    vault = vault_service.create_vault(session, vault_in)
    return vault_service.to_schema(session, vault)


@router.get("/", response_model=List[schemas.Vault])
async def get_all_vaults(session: SessionDep, state: LifecycleState | None = None):
    statement = select(Vault)
    if state is not None:
        statement = statement.where(Vault.state == state)
    vaults = session.exec(statement.order_by(Vault.created_at)).all()
    return [vault_service.to_schema(session, vault) for vault in vaults]


@router.get("/{slug}", response_model=schemas.Vault)
async def get_vault_info(engine: EngineDep):
    return vault_service.to_schema(
        engine.session, engine.vault, pending_yield=engine.pending_yield()
    )


@router.get("/{slug}/pending-yield", response_model=schemas.PendingYieldResponse)
async def get_pending_yield(engine: EngineDep):
    return schemas.PendingYieldResponse(pending_yield=engine.pending_yield())


@router.get("/{slug}/price-per-share")
async def get_price_per_share_history(engine: EngineDep):
    df = price_per_share_frame(engine.session, engine.vault_id)
    return {
        "date": df["datetime"].map(lambda d: d.isoformat()).tolist(),
        "price_per_share": df["price_per_share"].tolist(),
        "pct_change": df["pct_change"].tolist(),
    }


@router.post("/{slug}/deposit", response_model=schemas.DepositResponse)
def deposit(engine: EngineDep, caller: CallerDep, body: schemas.DepositRequest):
    shares = engine.deposit(caller, body.user, body.amount)
    return schemas.DepositResponse(shares=shares)


@router.post("/{slug}/withdraw", response_model=schemas.WithdrawResponse)
def withdraw(engine: EngineDep, caller: CallerDep, body: schemas.WithdrawRequest):
    result = engine.withdraw(caller, body.user, body.amount)
    return schemas.WithdrawResponse(**result._asdict())


@router.post("/{slug}/harvest", response_model=schemas.HarvestResponse)
def harvest(engine: EngineDep, caller: CallerDep):
    result = engine.harvest(caller)
    return schemas.HarvestResponse(**result._asdict())


@router.post("/{slug}/pause", response_model=schemas.Vault)
def pause(engine: EngineDep, caller: CallerDep):
    engine.pause(caller)
    return vault_service.to_schema(engine.session, engine.vault)


@router.post("/{slug}/unpause", response_model=schemas.Vault)
def unpause(engine: EngineDep, caller: CallerDep):
    engine.unpause(caller)
    return vault_service.to_schema(engine.session, engine.vault)


@router.post("/{slug}/panic", response_model=schemas.Vault)
def panic(engine: EngineDep, caller: CallerDep):
    engine.panic(caller)
    return vault_service.to_schema(engine.session, engine.vault)


@router.post("/{slug}/retire", response_model=schemas.Vault)
def retire(engine: EngineDep, caller: CallerDep):
    engine.retire(caller)
    return vault_service.to_schema(engine.session, engine.vault)
