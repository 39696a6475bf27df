import uuid

import pytest

from club_manager.core.middleware import tenant_of


def test_tenant_is_read_from_club_paths():
    club_id = uuid.uuid4()

    assert tenant_of(f"/api/clubs/{club_id}/evenements/") == str(club_id)
    assert tenant_of(f"/api/clubs/{club_id}") == str(club_id)
    assert tenant_of("/api/clubs/") is None
    assert tenant_of("/api/types-reunion/") is None


@pytest.mark.asyncio
async def test_request_id_is_echoed(client, auth, member, club):
    response = await client.get(
        f"/api/clubs/{club.id}",
        headers={**auth(member), "X-Request-ID": "abc123"},
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_request_id_is_generated(client):
    response = await client.get("/api/types-reunion/")

    assert response.status_code == 401
    assert len(response.headers["X-Request-ID"]) == 8
