"""API tests for Message controller."""

import pytest
from fastapi import status


@pytest.mark.asyncio
class TestMessageController:
    """Test cases for Message API endpoints."""

    async def test_append_message(self, authenticated_client, test_user):
        response = await authenticated_client.post(
            "/api/messages/",
            json={"ephemeral_conversation_id": "eph-api", "sender": "user", "text": "I'm tired today"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["sender"] == "user"
        assert data["ephemeral_conversation_id"] == "eph-api"
        assert data["conversation_id"] is None
        assert data["user_id"] == str(test_user.id)

    async def test_append_message_with_client_timestamp(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/messages/",
            json={
                "ephemeral_conversation_id": "eph-api",
                "sender": "assistant",
                "text": "Why's that?",
                "timestamp": "2024-05-14T21:01:00",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["timestamp"] == "2024-05-14T21:01:00"

    async def test_append_message_offset_timestamp_stored_as_utc(self, authenticated_client):
        response = await authenticated_client.post(
            "/api/messages/",
            json={
                "ephemeral_conversation_id": "eph-api",
                "text": "Morning in Karachi",
                "timestamp": "2024-05-14T10:00:00+05:00",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["timestamp"] == "2024-05-14T05:00:00"

    @pytest.mark.parametrize(
        "payload",
        [
            {"ephemeral_conversation_id": "   ", "text": "hi"},
            {"ephemeral_conversation_id": "eph-api", "text": ""},
            {"ephemeral_conversation_id": "eph-api", "text": "hi", "sender": "narrator"},
        ],
    )
    async def test_append_message_invalid(self, authenticated_client, payload):
        response = await authenticated_client.post("/api/messages/", json=payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_list_open_conversations(self, authenticated_client, tired_day_conversation):
        response = await authenticated_client.get("/api/messages/conversations")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        conversation = data["conversations"][0]
        assert conversation["ephemeral_conversation_id"] == tired_day_conversation
        assert conversation["last_message"] == "Long day at work"
        assert conversation["message_count"] == 3

    async def test_get_open_conversation(self, authenticated_client, tired_day_conversation):
        response = await authenticated_client.get(f"/api/messages/conversations/{tired_day_conversation}")

        assert response.status_code == status.HTTP_200_OK
        messages = response.json()["data"]["messages"]
        assert [m["sender"] for m in messages] == ["user", "assistant", "user"]

    async def test_get_open_conversation_not_found(self, authenticated_client):
        response = await authenticated_client.get("/api/messages/conversations/eph-unknown")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_messages_require_authentication(self, client):
        response = await client.get("/api/messages/conversations")
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
