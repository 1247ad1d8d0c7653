"""
Tests for authorization boundaries: caller identity, role enforcement and
cross-user isolation.

1. **Identity**: Requests without valid gateway headers, or naming a user
   that is unknown or deactivated, are rejected with 401.

2. **Role enforcement**: USER callers cannot reach admin endpoints; ADMIN
   callers cannot reach member money-movement endpoints.

3. **Cross-user isolation**: A user cannot see, block or move money from
   another user's cards. Reads answer 404 so existence is not revealed.
"""

import uuid

import pytest
from sqlalchemy import update

from app.models.user import User


class TestCallerIdentity:

    async def test_missing_headers(self, client, member):
        response = await client.get("/api/cards/my-cards")
        assert response.status_code == 401

    async def test_missing_role_header(self, client, member):
        response = await client.get(
            "/api/cards/my-cards", headers={"X-User-Id": str(member.id)}
        )
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "user_id, role",
        [("not-a-uuid", "USER"), (None, "SUPERUSER")],
    )
    async def test_malformed_headers(self, client, member, user_id, role):
        headers = {"X-User-Id": user_id or str(member.id), "X-User-Role": role}
        response = await client.get("/api/cards/my-cards", headers=headers)
        assert response.status_code == 401

    async def test_unknown_user(self, client):
        headers = {"X-User-Id": str(uuid.uuid4()), "X-User-Role": "USER"}
        response = await client.get("/api/cards/my-cards", headers=headers)
        assert response.status_code == 401

    async def test_deactivated_user(self, client, member, member_headers, db_session):
        await db_session.execute(
            update(User).where(User.id == member.id).values(is_active=False)
        )
        await db_session.commit()

        response = await client.get("/api/cards/my-cards", headers=member_headers)
        assert response.status_code == 401

    async def test_role_header_is_case_insensitive(self, client, member):
        headers = {"X-User-Id": str(member.id), "X-User-Role": "user"}
        response = await client.get("/api/cards/my-cards", headers=headers)
        assert response.status_code == 200


class TestRoleEnforcement:

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/cards"),
            ("PUT", "/api/cards/{card_id}/block"),
            ("PUT", "/api/cards/{card_id}/unblock"),
            ("DELETE", "/api/cards/{card_id}"),
            ("GET", "/api/admin/cards/{card_id}/transactions"),
        ],
    )
    async def test_user_blocked_from_admin_endpoints(
        self, client, member, member_headers, make_card, method, path
    ):
        card = await make_card(member)
        response = await client.request(
            method, path.format(card_id=card.id), headers=member_headers
        )
        assert response.status_code == 403

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/cards/my-cards"),
            ("GET", "/api/transfers/my-transactions"),
            ("GET", "/api/cards/{card_id}/balance"),
            ("POST", "/api/cards/{card_id}/request-block"),
        ],
    )
    async def test_admin_blocked_from_member_endpoints(
        self, client, member, admin_headers, make_card, method, path
    ):
        card = await make_card(member)
        response = await client.request(
            method, path.format(card_id=card.id), headers=admin_headers
        )
        assert response.status_code == 403


class TestCrossUserIsolation:

    async def test_my_cards_only_lists_own(
        self, client, member, second_member, second_member_headers, make_card
    ):
        await make_card(member)
        response = await client.get("/api/cards/my-cards", headers=second_member_headers)
        assert response.json()["total"] == 0

    async def test_cannot_see_other_users_transactions(
        self, client, member, member_headers, second_member_headers, make_card
    ):
        source = await make_card(member, balance="10.00")
        dest = await make_card(member)
        await client.post(
            "/api/transfers",
            json={"from_card_id": str(source.id), "to_card_id": str(dest.id), "amount": "1.00"},
            headers=member_headers,
        )

        response = await client.get(
            "/api/transfers/my-transactions", headers=second_member_headers
        )
        assert response.json()["total"] == 0

        response = await client.get(
            f"/api/transfers/card/{source.id}", headers=second_member_headers
        )
        assert response.status_code == 404

    async def test_cannot_move_money_out_of_other_users_card(
        self, client, member, second_member, second_member_headers, make_card
    ):
        victim = await make_card(member, balance="100.00")
        own = await make_card(second_member)

        response = await client.post(
            "/api/transfers",
            json={"from_card_id": str(victim.id), "to_card_id": str(own.id), "amount": "100.00"},
            headers=second_member_headers,
        )
        assert response.status_code == 403
