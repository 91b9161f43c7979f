"""Integration tests for the /api/v1/designs endpoints.

Verifies status codes, the camelCase response shape, the ErrorResponse
contract, and that generation settles in the background after 201.
"""

import uuid

import pytest
from sqlalchemy import func, select

from roomai.models.db import Design


async def _generate(client, room_id, headers, **body):
    return await client.post(
        "/api/v1/designs/generate", json={"roomId": str(room_id), **body}, headers=headers
    )


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_user_header(self, client, room):
        resp = await _generate(client, room.id, {})
        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] == "authentication_required"
        assert body["retryable"] is False
        assert "X-Request-ID" in resp.headers


class TestGenerateDesign:
    @pytest.mark.asyncio
    async def test_returns_pending_then_completes(self, client, room, job, owner_headers):
        resp = await _generate(
            client, room.id, owner_headers, customPrompt="Add plants", aiProvider="openai"
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["roomId"] == str(room.id)
        assert body["imageUrl"] == ""
        assert body["prompt"] == "Add plants"
        assert body["aiProvider"] == "openai"
        assert body["allImageUrls"] is None

        await job.drain()
        polled = await client.get(f"/api/v1/designs/{body['id']}", headers=owner_headers)
        assert polled.status_code == 200
        done = polled.json()
        assert done["status"] == "COMPLETED"
        assert done["imageUrl"] == "https://cdn.example.com/design_a.png"
        assert done["allImageUrls"] == [
            "https://cdn.example.com/design_a.png",
            "https://cdn.example.com/design_b.png",
        ]
        assert done["processingTime"] is not None
        assert done["error"] is None
        assert done["room"] == {
            "id": str(room.id),
            "name": "Main living room",
            "type": "LIVING_ROOM",
            "dimensions": {"length": 5.0, "width": 4.0, "height": 2.7},
            "projectStyle": "SCANDINAVIAN",
        }

    @pytest.mark.asyncio
    async def test_unknown_room(self, client, owner_headers):
        resp = await _generate(client, uuid.uuid4(), owner_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "room_not_found"

    @pytest.mark.asyncio
    async def test_foreign_room(self, client, stranger_room, owner_headers, session_factory):
        resp = await _generate(client, stranger_room.id, owner_headers)

        assert resp.status_code == 403
        assert resp.json()["error"] == "access_denied"
        async with session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(Design))).scalar_one()
        assert count == 0

    @pytest.mark.asyncio
    async def test_validation_error_shape(self, client, room, owner_headers):
        resp = await _generate(client, room.id, owner_headers, aiProvider="midjourney")
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "validation_error"
        assert "aiProvider" in body["message"]


class TestReadDesigns:
    @pytest.mark.asyncio
    async def test_other_user_cannot_read(self, client, room, job, owner_headers, stranger_headers):
        created = (await _generate(client, room.id, owner_headers)).json()
        await job.drain()

        resp = await client.get(f"/api/v1/designs/{created['id']}", headers=stranger_headers)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_design(self, client, owner_headers):
        resp = await client.get(f"/api/v1/designs/{uuid.uuid4()}", headers=owner_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "design_not_found"

    @pytest.mark.asyncio
    async def test_list_with_pagination(self, client, room, job, owner_headers):
        for _ in range(3):
            await _generate(client, room.id, owner_headers)
        await job.drain()

        resp = await client.get("/api/v1/designs?page=1&limit=2", headers=owner_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["items"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    @pytest.mark.asyncio
    async def test_list_filters(self, client, room, job, owner_headers):
        await _generate(client, room.id, owner_headers, aiProvider="openai")
        await _generate(client, room.id, owner_headers, aiProvider="replicate")
        await job.drain()

        resp = await client.get(
            f"/api/v1/designs?aiProvider=openai&status=COMPLETED&roomId={room.id}",
            headers=owner_headers,
        )

        items = resp.json()["items"]
        assert [i["aiProvider"] for i in items] == ["openai"]

    @pytest.mark.asyncio
    async def test_list_by_project(self, client, room, stranger_room, job, owner_headers):
        await _generate(client, room.id, owner_headers)
        await job.drain()

        resp = await client.get(
            f"/api/v1/designs?projectId={room.project_id}", headers=owner_headers
        )
        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 1

        resp = await client.get(
            f"/api/v1/designs?projectId={stranger_room.project_id}", headers=owner_headers
        )
        assert resp.status_code == 403

        resp = await client.get(f"/api/v1/designs?projectId={uuid.uuid4()}", headers=owner_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "project_not_found"

    @pytest.mark.asyncio
    async def test_list_limit_bounds(self, client, owner_headers):
        resp = await client.get("/api/v1/designs?limit=51", headers=owner_headers)
        assert resp.status_code == 422
        resp = await client.get("/api/v1/designs?page=0", headers=owner_headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_room_designs(self, client, room, job, owner_headers, stranger_headers):
        await _generate(client, room.id, owner_headers)
        await job.drain()

        resp = await client.get(f"/api/v1/designs/room/{room.id}", headers=owner_headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 1

        resp = await client.get(f"/api/v1/designs/room/{room.id}", headers=stranger_headers)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, client, room, job, owner_headers):
        await _generate(client, room.id, owner_headers)
        await job.drain()

        resp = await client.get("/api/v1/designs/stats", headers=owner_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["totalDesigns"] == 1
        assert body["designsByStatus"] == {"COMPLETED": 1}
        assert body["successRate"] == 100
        assert body["recentDesigns"][0]["roomName"] == "Main living room"


class TestDeleteAndRegenerate:
    @pytest.mark.asyncio
    async def test_delete(self, client, room, job, owner_headers):
        created = (await _generate(client, room.id, owner_headers)).json()
        await job.drain()

        resp = await client.delete(f"/api/v1/designs/{created['id']}", headers=owner_headers)
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/designs/{created['id']}", headers=owner_headers)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_foreign(self, client, room, job, owner_headers, stranger_headers):
        created = (await _generate(client, room.id, owner_headers)).json()
        await job.drain()

        resp = await client.delete(f"/api/v1/designs/{created['id']}", headers=stranger_headers)
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_regenerate_creates_sibling(self, client, room, job, owner_headers):
        created = (await _generate(client, room.id, owner_headers, customPrompt="Boho")).json()
        await job.drain()

        resp = await client.post(
            f"/api/v1/designs/{created['id']}/regenerate", headers=owner_headers
        )

        assert resp.status_code == 201
        sibling = resp.json()
        assert sibling["id"] != created["id"]
        assert sibling["roomId"] == created["roomId"]
        # Completion replaced the stored prompt with the provider's resolved one
        assert sibling["prompt"] == "effective prompt for LIVING_ROOM"
        assert sibling["status"] == "PENDING"
        await job.drain()

        original = await client.get(f"/api/v1/designs/{created['id']}", headers=owner_headers)
        assert original.json()["status"] == "COMPLETED"

    @pytest.mark.asyncio
    async def test_regenerate_with_overrides(self, client, room, job, owner_headers):
        created = (await _generate(client, room.id, owner_headers)).json()
        await job.drain()

        resp = await client.post(
            f"/api/v1/designs/{created['id']}/regenerate",
            json={"customPrompt": "Night scene", "aiProvider": "openai"},
            headers=owner_headers,
        )

        assert resp.status_code == 201
        assert resp.json()["prompt"] == "Night scene"
        assert resp.json()["aiProvider"] == "openai"
