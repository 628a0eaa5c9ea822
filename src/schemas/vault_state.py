from pydantic import BaseModel, ConfigDict


class VaultState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    deposit_total: int = 0
    shares_total: int = 0
    want_total: int = 0
    deployed_total: int = 0
