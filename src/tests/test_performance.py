from datetime import timedelta

import pendulum
import pytest
from sqlmodel import Session

from models import PricePerShareHistory
from services.performance import (
    calculate_apy_7d,
    calculate_roi,
    get_before_price_per_share,
    price_per_share_frame,
)

USER = "0x6666666666666666666666666666666666666666"
OWNER = "0x1111111111111111111111111111111111111111"


def add_sample(session: Session, vault_id, days_ago: int, pps: float):
    session.add(
        PricePerShareHistory(
            vault_id=vault_id,
            datetime=pendulum.now(tz=pendulum.UTC) - timedelta(days=days_ago),
            price_per_share=pps,
        )
    )
    session.commit()


def test_calculate_roi():
    assert calculate_roi(1.0, 1.0, 7) == 0
    assert calculate_roi(1.01, 1.0, 365.2425) == pytest.approx(0.01)


def test_before_price_per_share_picks_latest_old_enough(make_engine, db_session: Session):
    engine = make_engine()
    add_sample(db_session, engine.vault_id, 10, 1.00)
    add_sample(db_session, engine.vault_id, 8, 1.01)
    add_sample(db_session, engine.vault_id, 1, 1.05)

    pps = get_before_price_per_share(db_session, engine.vault_id, days=7)

    assert pps.price_per_share == pytest.approx(1.01)


def test_before_price_per_share_falls_back_to_first(make_engine, db_session: Session):
    engine = make_engine()
    add_sample(db_session, engine.vault_id, 2, 1.02)
    add_sample(db_session, engine.vault_id, 1, 1.03)

    pps = get_before_price_per_share(db_session, engine.vault_id, days=7)

    assert pps.price_per_share == pytest.approx(1.02)


def test_apy_7d(make_engine, chain, db_session: Session):
    engine = make_engine()
    assert calculate_apy_7d(db_session, engine.vault) is None

    chain.mint("0xCake", USER, 1000)
    engine.deposit(OWNER, USER, 1000)
    add_sample(db_session, engine.vault_id, 7, 1.0)

    assert calculate_apy_7d(db_session, engine.vault) == pytest.approx(0.0)


def test_price_per_share_frame(make_engine, db_session: Session):
    engine = make_engine()
    add_sample(db_session, engine.vault_id, 3, 1.0)
    add_sample(db_session, engine.vault_id, 2, 1.1)

    df = price_per_share_frame(db_session, engine.vault_id)

    assert df["price_per_share"].tolist() == [1.0, 1.1]
    assert df["pct_change"].tolist() == [0.0, pytest.approx(0.1)]
