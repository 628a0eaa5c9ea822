from datetime import datetime, timezone
import uuid

from sqlmodel import Field, SQLModel


class VaultHarvester(SQLModel, table=True):
    __tablename__ = "vault_harvesters"

    vault_id: uuid.UUID = Field(foreign_key="vaults.id", primary_key=True)
    address: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
