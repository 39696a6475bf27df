import pytest

from club_manager.clubs.models import Comite


@pytest.mark.asyncio
async def test_admin_creates_club(client, auth, admin):
    response = await client.post(
        "/api/clubs/",
        json={
            "name": "Rotary Club Cocody",
            "number": 4521,
            "email": " Contact@RotaryCocody.ci ",
            "meeting_day": "mardi",
        },
        headers=auth(admin),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "contact@rotarycocody.ci"
    assert data["meeting_day"] == "Mardi"
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_only_admin_creates_clubs(client, auth, president):
    response = await client.post(
        "/api/clubs/", json={"name": "Club", "number": 1}, headers=auth(president)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_club_number(client, auth, admin, club):
    response = await client.post(
        "/api/clubs/",
        json={"name": "Another club", "number": club.number},
        headers=auth(admin),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "DUPLICATE_ERROR"
    assert body["path"] == "/api/clubs/"


@pytest.mark.asyncio
async def test_validation_error_body(client, auth, admin):
    response = await client.post(
        "/api/clubs/",
        json={"name": "Club", "number": 12, "meeting_day": "Funday"},
        headers=auth(admin),
    )

    assert response.status_code == 400
    body = response.json()
    assert set(body) == {"error", "message", "details", "path"}
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"]["fields"]


@pytest.mark.asyncio
async def test_directory_pagination_headers(client, make_club):
    for name in ("Club A", "Club B", "Club C"):
        await make_club(name)

    response = await client.get("/api/clubs/?pageSize=2&page=2")

    assert response.status_code == 200
    assert response.headers["X-Total-Count"] == "3"
    assert response.headers["X-Page"] == "2"
    assert response.headers["X-Page-Size"] == "2"
    assert response.headers["X-Total-Pages"] == "2"
    assert [club["name"] for club in response.json()] == ["Club C"]


@pytest.mark.asyncio
async def test_invalid_order_direction(client):
    response = await client.get("/api/clubs/?orderDirection=sideways")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_president_updates_club_with_version(client, auth, club, president):
    response = await client.put(
        f"/api/clubs/{club.id}",
        json={"meeting_place": "Hotel Ivoire", "version": 1},
        headers=auth(president),
    )
    assert response.status_code == 200
    assert response.json()["version"] == 2

    stale = await client.put(
        f"/api/clubs/{club.id}",
        json={"meeting_place": "Sofitel", "version": 1},
        headers=auth(president),
    )
    assert stale.status_code == 409
    assert stale.json()["error"] == "CONCURRENCY_CONFLICT"


@pytest.mark.asyncio
async def test_treasurer_cannot_update_club(client, auth, club, treasurer):
    response = await client.put(
        f"/api/clubs/{club.id}", json={"address": "Plateau"}, headers=auth(treasurer)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_club_statistics(client, auth, club, member, make_mandat):
    await make_mandat(club, 2025)

    response = await client.get(
        f"/api/clubs/{club.id}/statistiques", headers=auth(member)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["members"] == 3
    assert data["mandats"] == 1
    assert data["current_mandat_year"] == 2025


@pytest.mark.asyncio
async def test_club_reads_are_stable(client, auth, club, member):
    first = await client.get(f"/api/clubs/{club.id}", headers=auth(member))
    second = await client.get(f"/api/clubs/{club.id}", headers=auth(member))

    assert first.status_code == 200
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_club_with_members_or_committees_is_kept(
    client, auth, admin, club, make_club, make_mandat, session
):
    with_members = await client.delete(f"/api/clubs/{club.id}", headers=auth(admin))
    assert with_members.status_code == 400
    assert with_members.json()["details"]["dependents"]["members"] == 3

    empty = await make_club("Rotary Club Bouake")
    mandat = await make_mandat(empty)
    session.add(Comite(club_id=empty.id, mandat_id=mandat.id, name="Protocole"))
    await session.commit()

    with_comite = await client.delete(f"/api/clubs/{empty.id}", headers=auth(admin))
    assert with_comite.status_code == 400
    assert with_comite.json()["details"]["dependents"] == {"comites": 1}

    spare = await make_club("Rotary Club Yamoussoukro")
    deleted = await client.delete(f"/api/clubs/{spare.id}", headers=auth(admin))
    assert deleted.status_code == 204
