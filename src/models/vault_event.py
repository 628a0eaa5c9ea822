from datetime import datetime, timezone
import json
import uuid

from sqlmodel import Field, SQLModel


class VaultEventBase(SQLModel):
    name: str = Field(index=True)
    # JSON encoded event arguments; amounts are kept as strings
    payload: str = "{}"
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class VaultEvent(VaultEventBase, table=True):
    __tablename__ = "vault_events"

    id: int | None = Field(default=None, primary_key=True)
    vault_id: uuid.UUID = Field(foreign_key="vaults.id", index=True)

    @property
    def args(self) -> dict:
        return json.loads(self.payload)
