from fastapi import APIRouter

import schemas
from api.api_v1.deps import CallerDep, EngineDep
from services import vault_service

router = APIRouter()


@router.post("/{slug}/upgrade-to", response_model=schemas.MigrationSnapshot)
def upgrade_to(engine: EngineDep, caller: CallerDep, body: schemas.UpgradeToRequest):
    successor = vault_service.get_vault_by_slug(engine.session, body.successor_slug)
    return engine.upgrade_to(caller, successor)


@router.post("/{slug}/upgrade-from", response_model=schemas.Vault)
def upgrade_from(engine: EngineDep, caller: CallerDep, body: schemas.UpgradeFromRequest):
    predecessor = vault_service.get_vault_by_slug(engine.session, body.predecessor_slug)
    snapshot = schemas.MigrationSnapshot(
        shares=body.shares,
        deposit_amount=body.deposit_amount,
        want_amount=body.want_amount,
    )
    engine.upgrade_from(caller, predecessor, snapshot)
    return vault_service.to_schema(engine.session, engine.vault)
