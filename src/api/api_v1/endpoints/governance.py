from fastapi import APIRouter

import schemas
from api.api_v1.deps import CallerDep, EngineDep
from services import vault_service

router = APIRouter()


@router.put("/{slug}/settings", response_model=schemas.FeeSettings)
def set_settings(engine: EngineDep, caller: CallerDep, body: schemas.FeeSettings):
    return engine.set_settings(caller, body)


@router.put("/{slug}/governance", response_model=schemas.Vault)
def set_governance(engine: EngineDep, caller: CallerDep, body: schemas.AddressRequest):
    engine.set_governance(caller, body.address)
    return vault_service.to_schema(engine.session, engine.vault)


@router.put("/{slug}/rewards", response_model=schemas.Vault)
def set_rewards(engine: EngineDep, caller: CallerDep, body: schemas.AddressRequest):
    engine.set_rewards(caller, body.address)
    return vault_service.to_schema(engine.session, engine.vault)


@router.put("/{slug}/treasury", response_model=schemas.Vault)
def set_treasury(engine: EngineDep, caller: CallerDep, body: schemas.AddressRequest):
    engine.set_treasury(caller, body.address)
    return vault_service.to_schema(engine.session, engine.vault)


@router.post("/{slug}/harvesters", response_model=schemas.Vault)
def add_harvester(engine: EngineDep, caller: CallerDep, body: schemas.AddressRequest):
    engine.add_harvester(caller, body.address)
    return vault_service.to_schema(engine.session, engine.vault)


@router.delete("/{slug}/harvesters/{address}", response_model=schemas.Vault)
def remove_harvester(engine: EngineDep, caller: CallerDep, address: str):
    engine.remove_harvester(caller, address)
    return vault_service.to_schema(engine.session, engine.vault)


@router.post("/{slug}/recover", status_code=204)
def recover_stuck_asset(engine: EngineDep, caller: CallerDep, body: schemas.RecoverRequest):
    engine.recover_stuck_asset(caller, body.token, body.amount, body.to)
