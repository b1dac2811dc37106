"""Integration tests for API key management over HTTP.

Covers how the secret is presented, owner-scoped CRUD and the way disabling,
expiring and deleting a key affects later requests.
"""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.api_key import ApiKey
from src.models.base import MAX_INTEGER_ID
from src.services.api_key_store import ApiKeyStore
from tests.conftest import auth_headers


@pytest.mark.asyncio
class TestAuthentication:
    """Presenting the secret."""

    async def test_bearer_header(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get("/api/keys", headers=auth_headers(test_key))
        assert response.status_code == 200

    async def test_query_parameter(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get("/api/keys", params={"key": test_key.key})
        assert response.status_code == 200

    async def test_query_parameter_wins_over_header(
        self, client: AsyncClient, test_key: ApiKey, other_owner_key: ApiKey
    ):
        response = await client.get(
            "/api/keys",
            params={"key": other_owner_key.key},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 200
        owners = {item["user_id"] for item in response.json()["items"]}
        assert owners == {2}

    async def test_invalid_query_parameter_is_not_rescued_by_header(
        self, client: AsyncClient, test_key: ApiKey
    ):
        response = await client.get(
            "/api/keys", params={"key": "bogus"}, headers=auth_headers(test_key)
        )
        assert response.status_code == 401

    async def test_missing_secret(self, client: AsyncClient):
        response = await client.get("/api/keys")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    async def test_unknown_secret(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get("/api/keys", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_non_bearer_scheme(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get(
            "/api/keys", headers={"Authorization": f"Basic {test_key.key}"}
        )
        assert response.status_code == 401

    async def test_expired_key(self, client: AsyncClient, expired_key: ApiKey):
        response = await client.get("/api/keys", headers=auth_headers(expired_key))
        assert response.status_code == 401

    async def test_disabled_key(self, client: AsyncClient, disabled_key: ApiKey):
        response = await client.get("/api/keys", headers=auth_headers(disabled_key))
        assert response.status_code == 401


@pytest.mark.asyncio
class TestCreate:
    """POST /api/keys"""

    async def test_create_for_caller(self, client: AsyncClient, test_key: ApiKey):
        response = await client.post(
            "/api/keys",
            json={"name": "ci-runner", "expires_in_days": 30},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "ci-runner"
        assert data["user_id"] == test_key.user_id
        assert data["active"] is True
        assert data["key"] != test_key.key
        assert len(data["key"]) >= 22

        expires_at = datetime.fromisoformat(data["expires_at"])
        assert expires_at > datetime.now(UTC) + timedelta(days=29)

    async def test_new_key_authenticates(self, client: AsyncClient, test_key: ApiKey):
        created = await client.post(
            "/api/keys",
            json={"name": "fresh", "expires_in_days": 1},
            headers=auth_headers(test_key),
        )
        new_secret = created.json()["key"]

        response = await client.get("/api/keys", params={"key": new_secret})

        assert response.status_code == 200
        assert response.json()["total"] == 2

    async def test_owner_cannot_be_chosen_by_caller(self, client: AsyncClient, test_key: ApiKey):
        response = await client.post(
            "/api/keys",
            json={"name": "sneaky", "expires_in_days": 1, "user_id": 99},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 201
        assert response.json()["user_id"] == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "", "expires_in_days": 30},
            {"name": "   ", "expires_in_days": 30},
            {"name": "x", "expires_in_days": 0},
            {"name": "x", "expires_in_days": -5},
            {"name": "x"},
            {"expires_in_days": 30},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, test_key: ApiKey, payload):
        response = await client.post("/api/keys", json=payload, headers=auth_headers(test_key))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    async def test_requires_authentication(self, client: AsyncClient, db: AsyncSession):
        response = await client.post("/api/keys", json={"name": "x", "expires_in_days": 1})

        assert response.status_code == 401
        assert await ApiKeyStore(db).count() == 0


@pytest.mark.asyncio
class TestReadAndList:
    """GET /api/keys and GET /api/keys/{id}"""

    async def test_list_only_callers_keys(
        self,
        client: AsyncClient,
        test_key: ApiKey,
        second_key: ApiKey,
        other_owner_key: ApiKey,
    ):
        response = await client.get("/api/keys", headers=auth_headers(test_key))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [item["id"] for item in data["items"]] == [test_key.id, second_key.id]

    async def test_get_own_key(self, client: AsyncClient, test_key: ApiKey, second_key: ApiKey):
        response = await client.get(f"/api/keys/{second_key.id}", headers=auth_headers(test_key))

        assert response.status_code == 200
        assert response.json()["key"] == second_key.key

    async def test_get_other_owners_key_is_404(
        self, client: AsyncClient, test_key: ApiKey, other_owner_key: ApiKey
    ):
        response = await client.get(
            f"/api/keys/{other_owner_key.id}", headers=auth_headers(test_key)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_get_missing_key_is_404(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get("/api/keys/99999", headers=auth_headers(test_key))
        assert response.status_code == 404

    async def test_non_integer_id_is_400(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get("/api/keys/abc", headers=auth_headers(test_key))
        assert response.status_code == 400

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_out_of_range_id_is_400(self, client: AsyncClient, test_key: ApiKey, method):
        response = await client.request(
            method,
            "/api/keys/99999999999999999999",
            json={"active": False} if method == "PUT" else None,
            headers=auth_headers(test_key),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    async def test_largest_storable_id_is_404(self, client: AsyncClient, test_key: ApiKey):
        response = await client.get(
            f"/api/keys/{MAX_INTEGER_ID}", headers=auth_headers(test_key)
        )
        assert response.status_code == 404

    async def test_zero_id_is_400(self, client: AsyncClient, test_key: ApiKey):
        response = await client.delete("/api/keys/0", headers=auth_headers(test_key))
        assert response.status_code == 400


@pytest.mark.asyncio
class TestUpdate:
    """PUT /api/keys/{id}"""

    async def test_disable_other_key(
        self, client: AsyncClient, test_key: ApiKey, second_key: ApiKey
    ):
        response = await client.put(
            f"/api/keys/{second_key.id}",
            json={"active": False},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 200
        assert response.json()["active"] is False

        rejected = await client.get("/api/keys", headers=auth_headers(second_key))
        assert rejected.status_code == 401

    async def test_reenable_keeps_expiry(
        self, client: AsyncClient, test_key: ApiKey, disabled_key: ApiKey
    ):
        before = await client.get(f"/api/keys/{disabled_key.id}", headers=auth_headers(test_key))

        response = await client.put(
            f"/api/keys/{disabled_key.id}",
            json={"active": True},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 200
        assert response.json()["active"] is True
        assert response.json()["expires_at"] == before.json()["expires_at"]

        accepted = await client.get("/api/keys", headers=auth_headers(disabled_key))
        assert accepted.status_code == 200

    async def test_renew_expired_key(
        self, client: AsyncClient, test_key: ApiKey, expired_key: ApiKey
    ):
        response = await client.put(
            f"/api/keys/{expired_key.id}",
            json={"active": True, "expires_in_days": 7},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 200
        expires_at = datetime.fromisoformat(response.json()["expires_at"])
        assert expires_at > datetime.now(UTC) + timedelta(days=6)

        accepted = await client.get("/api/keys", headers=auth_headers(expired_key))
        assert accepted.status_code == 200

    async def test_rename_and_blank_name(self, client: AsyncClient, test_key: ApiKey):
        renamed = await client.put(
            f"/api/keys/{test_key.id}",
            json={"active": True, "name": "primary"},
            headers=auth_headers(test_key),
        )
        assert renamed.json()["name"] == "primary"

        unchanged = await client.put(
            f"/api/keys/{test_key.id}",
            json={"active": True, "name": ""},
            headers=auth_headers(test_key),
        )
        assert unchanged.json()["name"] == "primary"

    async def test_active_is_required(self, client: AsyncClient, test_key: ApiKey):
        response = await client.put(
            f"/api/keys/{test_key.id}",
            json={"name": "no-active-flag"},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 400
        follow_up = await client.get(f"/api/keys/{test_key.id}", headers=auth_headers(test_key))
        assert follow_up.json()["active"] is True
        assert follow_up.json()["name"] == "owner-one"

    async def test_disabling_own_key_locks_caller_out(self, client: AsyncClient, test_key: ApiKey):
        response = await client.put(
            f"/api/keys/{test_key.id}",
            json={"active": False},
            headers=auth_headers(test_key),
        )
        assert response.status_code == 200

        rejected = await client.get("/api/keys", headers=auth_headers(test_key))
        assert rejected.status_code == 401

    async def test_update_other_owners_key_is_404(
        self, client: AsyncClient, db: AsyncSession, test_key: ApiKey, other_owner_key: ApiKey
    ):
        response = await client.put(
            f"/api/keys/{other_owner_key.id}",
            json={"active": False},
            headers=auth_headers(test_key),
        )

        assert response.status_code == 404
        record = await ApiKeyStore(db).find_by_id(other_owner_key.id)
        assert record.active is True


@pytest.mark.asyncio
class TestDelete:
    """DELETE /api/keys/{id}"""

    async def test_delete_then_delete_again(
        self, client: AsyncClient, test_key: ApiKey, second_key: ApiKey
    ):
        first = await client.delete(f"/api/keys/{second_key.id}", headers=auth_headers(test_key))

        assert first.status_code == 200
        assert first.json() == {"message": "API key deleted", "id": second_key.id}

        second = await client.delete(
            f"/api/keys/{second_key.id}", headers=auth_headers(test_key)
        )
        assert second.status_code == 404

    async def test_deleted_secret_no_longer_authenticates(
        self, client: AsyncClient, test_key: ApiKey, second_key: ApiKey
    ):
        await client.delete(f"/api/keys/{second_key.id}", headers=auth_headers(test_key))

        response = await client.get("/api/keys", headers=auth_headers(second_key))
        assert response.status_code == 401

    async def test_delete_other_owners_key_is_404(
        self, client: AsyncClient, db: AsyncSession, test_key: ApiKey, other_owner_key: ApiKey
    ):
        response = await client.delete(
            f"/api/keys/{other_owner_key.id}", headers=auth_headers(test_key)
        )

        assert response.status_code == 404
        assert await ApiKeyStore(db).find_by_id(other_owner_key.id)
