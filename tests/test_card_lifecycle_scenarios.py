"""
End-to-end card lifecycle scenarios through the HTTP API.
"""

from app.models.card import CardStatus
from conftest import future_date, past_date


class TestLifecycleScenarios:

    async def test_block_unblock_then_transfer(
        self, client, member, admin_headers, member_headers
    ):
        """
        Issue a card with 500.00, block it, watch a transfer fail, unblock it,
        then move 100.00 to a second card: balances end at 400.00 / 100.00 with
        exactly one SUCCESS entry.
        """
        issue = {
            "card_holder": "Alice Smith",
            "expiry_date": future_date().isoformat(),
            "owner_id": str(member.id),
        }
        first = await client.post(
            "/api/cards", json={**issue, "initial_balance": "500.00"}, headers=admin_headers
        )
        second = await client.post("/api/cards", json=issue, headers=admin_headers)
        assert first.status_code == 201 and second.status_code == 201
        first_id = first.json()["id"]
        second_id = second.json()["id"]

        blocked = await client.put(f"/api/cards/{first_id}/block", headers=admin_headers)
        assert blocked.json()["status"] == "BLOCKED"

        body = {"from_card_id": first_id, "to_card_id": second_id, "amount": "100.00"}
        rejected = await client.post("/api/transfers", json=body, headers=member_headers)
        assert rejected.status_code == 422
        assert rejected.json()["error_type"] == "card_blocked"

        unblocked = await client.put(f"/api/cards/{first_id}/unblock", headers=admin_headers)
        assert unblocked.json()["status"] == "ACTIVE"

        accepted = await client.post("/api/transfers", json=body, headers=member_headers)
        assert accepted.status_code == 201
        assert accepted.json()["status"] == "SUCCESS"

        first_balance = await client.get(f"/api/cards/{first_id}/balance", headers=member_headers)
        second_balance = await client.get(f"/api/cards/{second_id}/balance", headers=member_headers)
        assert first_balance.json()["balance"] == "400.00"
        assert second_balance.json()["balance"] == "100.00"

        history = await client.get("/api/transfers/my-transactions", headers=member_headers)
        items = history.json()["items"]
        assert [t["status"] for t in items] == ["SUCCESS"]

    async def test_expiry_is_applied_on_read_and_blocks_unblock(
        self, client, member, admin_headers, member_headers, make_card
    ):
        """
        An ACTIVE card past its expiry date reads back EXPIRED, and a card that
        was blocked before it expired cannot be unblocked.
        """
        stale = await make_card(member, expiry_date=past_date())
        response = await client.get(f"/api/cards/{stale.id}", headers=member_headers)
        assert response.json()["status"] == "EXPIRED"

        blocked = await make_card(member, status=CardStatus.BLOCKED, expiry_date=past_date())
        response = await client.put(f"/api/cards/{blocked.id}/unblock", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot unblock expired card"

        response = await client.get(f"/api/cards/{blocked.id}", headers=admin_headers)
        assert response.json()["status"] == "BLOCKED"
