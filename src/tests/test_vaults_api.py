from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from core.constants import CALLER_HEADER
from main import app
from services.adapters import MemoryFarm

USER = "0x6666666666666666666666666666666666666666"
OWNER = "0x1111111111111111111111111111111111111111"
GOVERNANCE = "0x2222222222222222222222222222222222222222"
HARVESTER = "0x5555555555555555555555555555555555555555"

client = TestClient(app)


@pytest.fixture(autouse=True)
def memory_chain(chain, db_session):
    with patch("services.adapters.registry.default_chain", chain):
        yield chain


def vault_payload(slug="cake-vault", **overrides):
    payload = {
        "name": "Cake Vault",
        "slug": slug,
        "contract_address": f"0xVault{slug}",
        "deposit_asset": "0xCake",
        "earned_asset": "0xCake",
        "reward_asset": "0xBalle",
        "earned_to_reward_path": ["0xCake", "0xWbnb", "0xBalle"],
        "owner": OWNER,
        "governance": GOVERNANCE,
        "rewards_address": "0x3333333333333333333333333333333333333333",
        "treasury_address": "0x4444444444444444444444444444444444444444",
        "harvesters": [HARVESTER],
    }
    payload.update(overrides)
    return payload


def as_caller(address):
    return {CALLER_HEADER: address}


def accrue(chain, slug, amount):
    farm = MemoryFarm(chain, f"0xVault{slug}", f"farm:{slug}", "0xCake", "0xCake")
    farm.accrue(amount)


def create(slug="cake-vault", **overrides):
    response = client.post("/api/v1/vaults/", json=vault_payload(slug, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_vault_uses_default_settings():
    vault = create()

    assert vault["slug"] == "cake-vault"
    assert vault["state"] == "active"
    assert vault["ledger"] == {
        "deposit_total": 0,
        "shares_total": 0,
        "want_total": 0,
        "deployed_total": 0,
    }
    assert vault["settings"] == {
        "entrance_fee": 10000,
        "performance_fee": 400,
        "rewards_fee_factor": 750,
        "treasury_fee_factor": 250,
        "slippage": 50,
    }
    assert vault["harvesters"] == [HARVESTER]
    assert vault["price_per_share"] == 1.0


def test_create_vault_rejects_duplicate_slug():
    create()
    response = client.post("/api/v1/vaults/", json=vault_payload())

    assert response.status_code == 400
    assert response.json()["error"] == "vault_error"


def test_create_vault_rejects_bad_settings():
    response = client.post(
        "/api/v1/vaults/",
        json=vault_payload(
            settings={
                "entrance_fee": 9900,
                "performance_fee": 400,
                "rewards_fee_factor": 750,
                "treasury_fee_factor": 250,
                "slippage": 50,
            }
        ),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "settings_out_of_bounds"


def test_unknown_vault_is_404():
    response = client.get("/api/v1/vaults/missing")

    assert response.status_code == 404
    assert response.json() == {
        "error": "vault_not_found",
        "message": "vault missing not found",
    }


def test_list_vaults_by_state():
    create("cake-vault")
    create("cake-vault-2")
    client.post("/api/v1/vaults/cake-vault-2/pause", headers=as_caller(OWNER))

    all_vaults = client.get("/api/v1/vaults/").json()
    paused = client.get("/api/v1/vaults/", params={"state": "paused"}).json()

    assert [v["slug"] for v in all_vaults] == ["cake-vault", "cake-vault-2"]
    assert [v["slug"] for v in paused] == ["cake-vault-2"]


def test_deposit_harvest_withdraw(memory_chain):
    create()
    memory_chain.mint("0xCake", USER, 500 * 10**18)

    response = client.post(
        "/api/v1/vaults/cake-vault/deposit",
        json={"user": USER, "amount": 500 * 10**18},
        headers=as_caller(OWNER),
    )
    assert response.status_code == 200
    assert response.json() == {"shares": 500 * 10**18}

    accrue(memory_chain, "cake-vault", 10 * 10**18)
    pending = client.get("/api/v1/vaults/cake-vault/pending-yield").json()
    assert pending == {"pending_yield": 10 * 10**18}

    response = client.post("/api/v1/vaults/cake-vault/harvest", headers=as_caller(HARVESTER))
    assert response.json() == {
        "harvested": 10 * 10**18,
        "to_rewards": 3 * 10**17,
        "to_treasury": 10**17,
        "reinvested": 96 * 10**17,
    }

    response = client.post(
        "/api/v1/vaults/cake-vault/withdraw",
        json={"user": USER, "amount": 5096 * 10**17},
        headers=as_caller(OWNER),
    )
    assert response.status_code == 200
    assert response.json()["shares"] == 500 * 10**18

    vault = client.get("/api/v1/vaults/cake-vault").json()
    assert vault["ledger"]["deposit_total"] == 0
    assert vault["ledger"]["shares_total"] == 0


def test_caller_header_is_required():
    create()
    response = client.post("/api/v1/vaults/cake-vault/pause")
    assert response.status_code == 422


def test_wrong_caller_is_403(memory_chain):
    create()
    memory_chain.mint("0xCake", USER, 100)

    response = client.post(
        "/api/v1/vaults/cake-vault/deposit",
        json={"user": USER, "amount": 100},
        headers=as_caller(GOVERNANCE),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "unauthorized"


def test_lifecycle_errors_are_400():
    create()
    response = client.post("/api/v1/vaults/cake-vault/unpause", headers=as_caller(OWNER))

    assert response.status_code == 400
    assert response.json()["error"] == "not_paused"


def test_panic_then_retire():
    create()
    response = client.post("/api/v1/vaults/cake-vault/panic", headers=as_caller(OWNER))
    assert response.json()["state"] == "paused"

    response = client.post("/api/v1/vaults/cake-vault/retire", headers=as_caller(OWNER))
    assert response.json()["state"] == "retired"


def test_governance_endpoints():
    create()
    new_settings = {
        "entrance_fee": 9990,
        "performance_fee": 500,
        "rewards_fee_factor": 800,
        "treasury_fee_factor": 200,
        "slippage": 100,
    }
    response = client.put(
        "/api/v1/vaults/cake-vault/settings", json=new_settings, headers=as_caller(GOVERNANCE)
    )
    assert response.status_code == 200
    assert response.json() == new_settings

    response = client.put(
        "/api/v1/vaults/cake-vault/settings",
        json={**new_settings, "slippage": 999},
        headers=as_caller(GOVERNANCE),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "settings_out_of_bounds"

    new_harvester = "0x9999999999999999999999999999999999999999"
    response = client.post(
        "/api/v1/vaults/cake-vault/harvesters",
        json={"address": new_harvester},
        headers=as_caller(GOVERNANCE),
    )
    assert sorted(response.json()["harvesters"]) == sorted([HARVESTER, new_harvester])

    response = client.delete(
        f"/api/v1/vaults/cake-vault/harvesters/{HARVESTER}", headers=as_caller(GOVERNANCE)
    )
    assert response.json()["harvesters"] == [new_harvester]

    response = client.put(
        "/api/v1/vaults/cake-vault/treasury",
        json={"address": new_harvester},
        headers=as_caller(GOVERNANCE),
    )
    assert response.json()["treasury_address"] == new_harvester


def test_recover_endpoint(memory_chain):
    create()
    memory_chain.mint("0xAirdrop", "0xVaultcake-vault", 10)

    response = client.post(
        "/api/v1/vaults/cake-vault/recover",
        json={"token": "0xCake", "amount": 10, "to": USER},
        headers=as_caller(GOVERNANCE),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "unsafe_recovery"

    response = client.post(
        "/api/v1/vaults/cake-vault/recover",
        json={"token": "0xAirdrop", "amount": 10, "to": USER},
        headers=as_caller(GOVERNANCE),
    )
    assert response.status_code == 204
    assert memory_chain.balance_of("0xAirdrop", USER) == 10


def test_migration_endpoints(memory_chain):
    create("cake-vault-v1")
    create("cake-vault-v2")
    memory_chain.mint("0xCake", USER, 300)
    client.post(
        "/api/v1/vaults/cake-vault-v1/deposit",
        json={"user": USER, "amount": 300},
        headers=as_caller(OWNER),
    )

    response = client.post(
        "/api/v1/vaults/cake-vault-v1/upgrade-to",
        json={"successor_slug": "cake-vault-v2"},
        headers=as_caller(OWNER),
    )
    snapshot = response.json()
    assert snapshot == {"shares": 300, "deposit_amount": 300, "want_amount": 0}

    response = client.post(
        "/api/v1/vaults/cake-vault-v2/upgrade-from",
        json={**snapshot, "predecessor_slug": "cake-vault-v1"},
        headers=as_caller(OWNER),
    )
    assert response.status_code == 200, response.text
    assert response.json()["ledger"]["deposit_total"] == 300

    old = client.get("/api/v1/vaults/cake-vault-v1").json()
    assert old["state"] == "retired"
    assert old["ledger"]["shares_total"] == 0


def test_price_per_share_history(memory_chain):
    create()
    memory_chain.mint("0xCake", USER, 1000)
    client.post(
        "/api/v1/vaults/cake-vault/deposit",
        json={"user": USER, "amount": 1000},
        headers=as_caller(OWNER),
    )
    accrue(memory_chain, "cake-vault", 100)
    client.post("/api/v1/vaults/cake-vault/harvest", headers=as_caller(HARVESTER))

    history = client.get("/api/v1/vaults/cake-vault/price-per-share").json()

    assert history["price_per_share"] == [pytest.approx(1.096)]
    assert history["pct_change"] == [0.0]
