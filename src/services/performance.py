from datetime import timedelta
import uuid

import pandas as pd
import pendulum
from sqlmodel import Session, select

from models.pps_history import PricePerShareHistory
from models.vaults import Vault
from services.vault_ledger import price_per_share


def record_price_per_share(session: Session, vault: Vault) -> PricePerShareHistory:
    sample = PricePerShareHistory(
        vault_id=vault.id,
        datetime=pendulum.now(tz=pendulum.UTC),
        price_per_share=price_per_share(vault.deposit_total, vault.shares_total),
        deposit_total=vault.deposit_total,
        shares_total=vault.shares_total,
    )
    session.add(sample)
    return sample


def get_before_price_per_share(
    session: Session, vault_id: uuid.UUID, days: int
) -> PricePerShareHistory | None:
    target_date = pendulum.now(tz=pendulum.UTC) - timedelta(days=days)

    # most recent sample at least `days` old
    pps = session.exec(
        select(PricePerShareHistory)
        .where(PricePerShareHistory.vault_id == vault_id)
        .where(PricePerShareHistory.datetime <= target_date)
        .order_by(PricePerShareHistory.datetime.desc())
    ).first()
    if pps is not None:
        return pps

    # otherwise fall back to the first sample ever taken
    return session.exec(
        select(PricePerShareHistory)
        .where(PricePerShareHistory.vault_id == vault_id)
        .order_by(PricePerShareHistory.datetime.asc())
    ).first()


def calculate_roi(after: float, before: float, days: int) -> float:
    # calculate our annualized return for a vault
    pps_delta = (after - before) / (before or 1)
    annualized_roi = (1 + pps_delta) ** (365.2425 / days) - 1
    return annualized_roi


def calculate_apy_7d(session: Session, vault: Vault) -> float | None:
    before = get_before_price_per_share(session, vault.id, days=7)
    if before is None:
        return None
    current = price_per_share(vault.deposit_total, vault.shares_total)
    return calculate_roi(current, before.price_per_share, days=7)


def price_per_share_frame(session: Session, vault_id: uuid.UUID) -> pd.DataFrame:
    """Price-per-share samples indexed by time, with the change between samples."""
    samples = session.exec(
        select(PricePerShareHistory)
        .where(PricePerShareHistory.vault_id == vault_id)
        .order_by(PricePerShareHistory.datetime.asc())
    ).all()

    df = pd.DataFrame(
        [
            {"datetime": s.datetime, "price_per_share": s.price_per_share}
            for s in samples
        ],
        columns=["datetime", "price_per_share"],
    )
    df["pct_change"] = df["price_per_share"].pct_change().fillna(0.0)
    return df
