"""API tests for the user profile controller."""

import pytest
from fastapi import status


@pytest.mark.asyncio
class TestUserController:
    """Test cases for /api/auth endpoints."""

    async def test_get_me(self, authenticated_client, test_user):
        response = await authenticated_client.get("/api/auth/me")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert data["auth_user_id"] == test_user.auth_user_id
        assert data["email"] == "test@example.com"
        assert data["is_active"] is True

    async def test_update_me(self, authenticated_client):
        response = await authenticated_client.put(
            "/api/auth/me", json={"username": "  journaler ", "email": "journaler@example.com"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["username"] == "journaler"
        assert data["email"] == "journaler@example.com"

    @pytest.mark.parametrize("payload", [{"username": "   "}, {"email": "not-an-email"}])
    async def test_update_me_invalid(self, authenticated_client, payload):
        response = await authenticated_client.put("/api/auth/me", json=payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_get_me_unauthenticated(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    async def test_get_me_with_invalid_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["status"] == "error"
