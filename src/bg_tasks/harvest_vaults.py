import logging

import click
from sqlmodel import Session, select

from core.config import settings
from core.db import engine
from log import setup_logging_to_console, setup_logging_to_file, setup_seq_logging
from models import Vault
from models.vaults import LifecycleState, NetworkChain
from services.fee_engine import HarvestResult
from services.vault_engine import VaultEngine

# # Initialize logger
logger = logging.getLogger("harvest_vaults")
logger.setLevel(logging.INFO)


def harvest_vault(session: Session, vault: Vault, harvester: str, min_pending: int) -> HarvestResult | None:
    vault_engine = VaultEngine(session, vault)
    pending = vault_engine.pending_yield()
    if pending < min_pending or pending == 0:
        logger.info(
            "Skipping %s: pending yield %s below threshold %s", vault.slug, pending, min_pending
        )
        return None
    return vault_engine.harvest(harvester)


def harvest_all(session: Session, harvester: str, network_chain: NetworkChain | None = None) -> dict:
    statement = select(Vault).where(Vault.state == LifecycleState.active)
    if network_chain is not None:
        statement = statement.where(Vault.network_chain == network_chain)
    vaults = session.exec(statement).all()

    results = {}
    for vault in vaults:
        slug = vault.slug
        try:
            result = harvest_vault(session, vault, harvester, settings.HARVEST_MIN_PENDING_YIELD)
            if result is not None:
                logger.info("Harvested %s: %s", slug, result)
            results[slug] = result
        except Exception as e:
            logger.error("An error occurred while harvesting %s: %s", slug, e, exc_info=True)
            results[slug] = e
    return results


# Main Execution
@click.command()
@click.option("--chain", default=None, help="Only harvest vaults on this network")
def main(chain: str | None):
    setup_logging_to_file("harvest_vaults", logger=logger)
    setup_logging_to_console(logger=logger)
    setup_seq_logging("harvest_vaults")

    if not settings.HARVESTER_ADDRESS:
        raise click.UsageError("HARVESTER_ADDRESS is not configured")

    network_chain = NetworkChain[chain.lower()] if chain else None
    with Session(engine) as session:
        results = harvest_all(session, settings.HARVESTER_ADDRESS, network_chain)

    failed = [slug for slug, r in results.items() if isinstance(r, Exception)]
    logger.info("Harvest run finished: %s vault(s), %s failed", len(results), len(failed))


if __name__ == "__main__":
    main()
