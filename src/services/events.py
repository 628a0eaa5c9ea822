import json
import logging
import uuid
from typing import List

from sqlmodel import Session, select

from models.vault_event import VaultEvent

logger = logging.getLogger(__name__)


def _encode(value):
    # amounts can exceed the float range of JSON consumers
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def record_event(session: Session, vault_id: uuid.UUID, name: str, **args) -> VaultEvent:
    event = VaultEvent(
        vault_id=vault_id,
        name=name,
        payload=json.dumps({k: _encode(v) for k, v in args.items()}),
    )
    session.add(event)
    logger.info("Vault %s emitted %s %s", vault_id, name, event.payload)
    return event


def get_events(
    session: Session, vault_id: uuid.UUID, name: str | None = None
) -> List[VaultEvent]:
    statement = select(VaultEvent).where(VaultEvent.vault_id == vault_id)
    if name is not None:
        statement = statement.where(VaultEvent.name == name)
    return session.exec(statement.order_by(VaultEvent.id)).all()
