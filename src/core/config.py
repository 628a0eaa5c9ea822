from typing import Any, Literal, Optional

from pydantic import Field, PostgresDsn, ValidationInfo, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    ENVIRONMENT_NAME: str = "Development"

    @property
    def is_production(self):
        return self.ENVIRONMENT_NAME == "Production"

    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Balle Vault Engine"

    # "memory" keeps balances, farm positions and swaps in-process,
    # "web3" talks to the MasterChef / router / ERC20 contracts.
    ADAPTER_BACKEND: Literal["memory", "web3"] = "memory"

    BSC_MAINNET_RPC_URL: Optional[str] = None
    ABI_DIR: Optional[str] = None

    OPERATION_ADMIN_WALLET_ADDRESS: Optional[str] = None
    OPERATION_ADMIN_WALLET_PRIVATE_KEY: Optional[str] = None

    # Settings applied to newly registered vaults
    VAULT_DEFAULT_ENTRANCE_FEE: int = 10000
    VAULT_DEFAULT_PERFORMANCE_FEE: int = 400
    VAULT_DEFAULT_REWARDS_FEE_FACTOR: int = 750
    VAULT_DEFAULT_TREASURY_FEE_FACTOR: int = 250
    VAULT_DEFAULT_SLIPPAGE: int = 50

    # Harvest job
    HARVESTER_ADDRESS: Optional[str] = None
    HARVEST_MIN_PENDING_YIELD: int = 0

    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    LOG_DIR: str = "~/logs"

    # Seq log
    SEQ_SERVER_URL: Optional[str] = None
    SEQ_SERVER_API_KEY: Optional[str] = None

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: str | None, info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v
        if not info.data.get("POSTGRES_SERVER"):
            # in-memory sqlite for local runs and tests
            return "sqlite://"
        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=info.data.get("POSTGRES_USER"),
                password=info.data.get("POSTGRES_PASSWORD"),
                host=info.data.get("POSTGRES_SERVER"),
                path=f"{info.data.get('POSTGRES_DB') or ''}",
            )
        )

    class Config:

        case_sensitive = True
        env_file = ".env"
        extra = "allow"


settings = Settings()
