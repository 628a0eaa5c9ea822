from datetime import datetime
from sqlmodel import SQLModel, Field
import uuid

from models.types import amount_column


class PricePerShareHistoryBase(SQLModel):
    datetime: datetime
    price_per_share: float


class PricePerShareHistory(PricePerShareHistoryBase, table=True):
    """Sampled after every harvest and after a migration lands."""

    __tablename__ = "pps_history"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    vault_id: uuid.UUID = Field(foreign_key="vaults.id", index=True)
    deposit_total: int = Field(default=0, sa_column=amount_column())
    shares_total: int = Field(default=0, sa_column=amount_column())
