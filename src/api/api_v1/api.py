from fastapi import APIRouter

from api.api_v1.endpoints import (
    vaults,
    governance,
    migration,
)

api_router = APIRouter()

api_router.include_router(
    vaults.router, prefix="/vaults"
)
api_router.include_router(
    governance.router, prefix="/vaults"
)
api_router.include_router(
    migration.router, prefix="/vaults"
)
