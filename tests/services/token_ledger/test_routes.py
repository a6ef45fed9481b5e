"""
Tests for the token ledger API.
"""

from typing import Any

import pytest
from httpx import AsyncClient, Response

from shared.auth import sign_commitment
from shared.blockchain import get_ledger_client
from shared.zk import SideloadProver, generate_verification_key

from tests.conftest import ADMIN, ALICE, BOB, CONTRACT


async def signed_post(
    client: AsyncClient,
    path: str,
    operation: str,
    body: dict[str, Any],
    *signers: str,
    fee_payer: str | None = None,
) -> Response:
    """Fetch the commitment for ``body``, sign it and submit the operation."""
    payer = fee_payer or signers[0]
    preview = await client.post(
        "/api/v1/token/commitment",
        json={"operation": operation, "arguments": body},
        headers={"X-Fee-Payer": payer},
    )
    assert preview.status_code == 200, preview.text
    commitment = preview.json()["commitment"]

    headers = [("X-Fee-Payer", payer)]
    headers += [("X-Signature", sign_commitment(s, commitment)) for s in signers]
    return await client.post(path, json=body, headers=headers)


async def initialize(client: AsyncClient, **overrides: Any) -> None:
    body = {"admin": ADMIN, "decimals": 9, **overrides}
    response = await signed_post(client, "/api/v1/admin/initialize", "initialize", body, CONTRACT)
    assert response.status_code == 200, response.text


async def mint(client: AsyncClient, recipient: str, amount: int) -> Response:
    return await signed_post(
        client,
        "/api/v1/token/mint",
        "mint",
        {"recipient": recipient, "amount": amount},
        ADMIN,
    )


async def balance(client: AsyncClient, owner: str) -> int:
    response = await client.get(f"/api/v1/state/balance/{owner}")
    return response.json()["balance"]


async def token_id(client: AsyncClient) -> int:
    response = await client.get("/api/v1/state/token")
    return int(response.json()["token_id"])


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, token_ledger_client: AsyncClient) -> None:
        response = await token_ledger_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "token-ledger"
        assert data["components"]["ledger"]["status"] == "healthy"
        assert data["components"]["contract"]["status"] == "uninitialized"

    @pytest.mark.asyncio
    async def test_root(self, token_ledger_client: AsyncClient) -> None:
        response = await token_ledger_client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == "0.1.0"


class TestOperations:
    """End-to-end token operations over HTTP."""

    @pytest.mark.asyncio
    async def test_plain_scenario(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)

        response = await mint(client, ALICE, 1000)
        assert response.status_code == 200, response.text
        assert response.json()["success"] is True

        response = await signed_post(
            client,
            "/api/v1/token/transfer",
            "transfer",
            {"sender": ALICE, "receiver": BOB, "amount": 1000},
            ALICE,
        )
        assert response.status_code == 200, response.text

        response = await signed_post(
            client,
            "/api/v1/token/burn",
            "burn",
            {"owner": BOB, "amount": 150},
            BOB,
        )
        assert response.status_code == 200, response.text

        assert await balance(client, ALICE) == 0
        assert await balance(client, BOB) == 850
        circulating = await client.get("/api/v1/state/circulating")
        assert circulating.json() == {"circulating": 850}

        events = await client.get("/api/v1/state/events")
        names = [e["name"] for e in events.json()["events"]]
        assert names == ["Initialization", "Mint", "Transfer", "Burn"]

    @pytest.mark.asyncio
    async def test_state_queries(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client, decimals=6)

        assert (await client.get("/api/v1/state/decimals")).json() == {"decimals": 6}
        assert (await client.get("/api/v1/state/admin")).json() == {"admin": ADMIN}
        root = (await client.get("/api/v1/state/registry-root")).json()["registry_root"]
        assert len(root) == 64

        policy = (await client.get("/api/v1/state/policy")).json()
        assert set(policy["records"]) == {"MINT", "BURN", "TRANSFER", "BATCH_APPROVE"}
        assert policy["records"]["MINT"]["should_verify"] is False

        info = (await client.get("/api/v1/state/token")).json()
        assert info["address"] == CONTRACT
        assert info["initialized"] is True

    @pytest.mark.asyncio
    async def test_uninitialized(self, token_ledger_client: AsyncClient) -> None:
        response = await token_ledger_client.get("/api/v1/state/policy")

        assert response.status_code == 400
        assert response.json()["error_code"] == "not_initialized"

    @pytest.mark.asyncio
    async def test_missing_fee_payer(self, token_ledger_client: AsyncClient) -> None:
        response = await token_ledger_client.post(
            "/api/v1/token/mint",
            json={"recipient": ALICE, "amount": 1},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_mint_without_admin(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)

        response = await signed_post(
            client,
            "/api/v1/token/mint",
            "mint",
            {"recipient": ALICE, "amount": 1},
            ALICE,
        )

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "missing_signature"
        assert body["error_kind"] == "authorization"

    @pytest.mark.asyncio
    async def test_signature_bound_to_arguments(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)
        preview = await client.post(
            "/api/v1/token/commitment",
            json={"operation": "mint", "arguments": {"recipient": ALICE, "amount": 1}},
            headers={"X-Fee-Payer": ADMIN},
        )
        signature = sign_commitment(ADMIN, preview.json()["commitment"])

        response = await client.post(
            "/api/v1/token/mint",
            json={"recipient": ALICE, "amount": 1_000_000},
            headers={"X-Fee-Payer": ADMIN, "X-Signature": signature},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "invalid_signature"
        assert await balance(client, ALICE) == 0

    @pytest.mark.asyncio
    async def test_replay_rejected(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)
        body = {"recipient": ALICE, "amount": 5}
        preview = await client.post(
            "/api/v1/token/commitment",
            json={"operation": "mint", "arguments": body},
            headers={"X-Fee-Payer": ADMIN},
        )
        headers = {
            "X-Fee-Payer": ADMIN,
            "X-Signature": sign_commitment(ADMIN, preview.json()["commitment"]),
        }

        first = await client.post("/api/v1/token/mint", json=body, headers=headers)
        second = await client.post("/api/v1/token/mint", json=body, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 401
        assert await balance(client, ALICE) == 5

    @pytest.mark.asyncio
    async def test_invalid_amount(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)

        response = await mint(client, ALICE, 0)

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid_amount"

    @pytest.mark.asyncio
    async def test_unknown_operation_commitment(self, token_ledger_client: AsyncClient) -> None:
        response = await token_ledger_client.post(
            "/api/v1/token/commitment",
            json={"operation": "steal", "arguments": {}},
            headers={"X-Fee-Payer": ALICE},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_batch_approval(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)
        await mint(client, ALICE, 100)
        tid = await token_id(client)

        balanced = {
            "forest": [
                {"owner": BOB, "token_id": tid, "balance_change": 40,
                 "children": [{"owner": ALICE, "token_id": tid, "balance_change": -40}]},
            ]
        }
        response = await signed_post(client, "/api/v1/token/approve", "approve_batch", balanced, ALICE)
        assert response.status_code == 200, response.text
        assert response.json()["token_updates"] == 2
        assert await balance(client, BOB) == 40

        flash = {
            "forest": [
                {"owner": BOB, "token_id": tid, "balance_change": 10},
                {"owner": ALICE, "token_id": tid, "balance_change": -10},
            ]
        }
        response = await signed_post(client, "/api/v1/token/approve", "approve_batch", flash, ALICE)
        assert response.status_code == 422
        assert response.json()["error_code"] == "flash_mint_detected"
        assert response.json()["details"]["node_index"] == 0


class TestAdministration:
    """Registry and policy administration over HTTP."""

    @pytest.mark.asyncio
    async def test_policy_flag_gates_direct_calls(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)
        await mint(client, ALICE, 100)

        response = await signed_post(
            client,
            "/api/v1/admin/policy-flag",
            "update_policy_flag",
            {"operation_id": 3, "flag": "should_verify", "value": True},
            ADMIN,
        )
        assert response.status_code == 200, response.text
        assert response.json()["records"]["TRANSFER"]["should_verify"] is True

        response = await signed_post(
            client,
            "/api/v1/token/transfer",
            "transfer",
            {"sender": ALICE, "receiver": BOB, "amount": 1},
            ALICE,
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "sideload_required_use_proof_variant"

    @pytest.mark.asyncio
    async def test_invalid_operation_id(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)

        response = await signed_post(
            client,
            "/api/v1/admin/policy",
            "update_policy_record",
            {"operation_id": 9, "record": {"should_verify": True}},
            ADMIN,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid_operation_id"

    @pytest.mark.asyncio
    async def test_set_admin(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)

        response = await signed_post(client, "/api/v1/admin/admin", "set_admin", {"admin": BOB}, ADMIN)

        assert response.status_code == 200, response.text
        assert (await client.get("/api/v1/state/admin")).json() == {"admin": BOB}

    @pytest.mark.asyncio
    async def test_proof_gated_burn(self, token_ledger_client: AsyncClient) -> None:
        client = token_ledger_client
        await initialize(client)
        await mint(client, ALICE, 1000)
        key = generate_verification_key("burn")

        response = await signed_post(
            client,
            "/api/v1/admin/registry",
            "update_registry_entry",
            {"operation_id": 2, "key_hash": key.hash, "registry": {}},
            ADMIN,
        )
        assert response.status_code == 200, response.text
        registry = response.json()["registry"]
        assert registry == {"2": key.hash}

        response = await signed_post(
            client,
            "/api/v1/admin/policy-flag",
            "update_policy_flag",
            {"operation_id": 2, "flag": "should_verify", "value": True},
            ADMIN,
        )
        assert response.status_code == 200, response.text

        proof = SideloadProver(key).prove_account_state(
            get_ledger_client(), ALICE, await token_id(client)
        )
        body = {
            "owner": ALICE,
            "amount": 100,
            "proof": proof.model_dump(mode="json"),
            "verification_key": generate_verification_key().data,
            "registry": registry,
        }
        response = await signed_post(
            client, "/api/v1/token/burn-with-proof", "burn_with_proof", body, ALICE
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "unregistered_key"

        body["verification_key"] = key.data
        response = await signed_post(
            client, "/api/v1/token/burn-with-proof", "burn_with_proof", body, ALICE
        )
        assert response.status_code == 200, response.text
        assert await balance(client, ALICE) == 900
