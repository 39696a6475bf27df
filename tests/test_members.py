import pytest

from club_manager.clubs.models import RoleType


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    registered = await client.post(
        "/api/auth/register",
        json={
            "email": "Nadia.Bamba@Example.com",
            "password": "motdepasse123",
            "first_name": "Nadia",
            "last_name": "Bamba",
        },
    )
    assert registered.status_code == 201
    assert registered.json()["email"] == "nadia.bamba@example.com"
    assert registered.json()["roles"] == []

    bad = await client.post(
        "/api/auth/login",
        json={"email": "nadia.bamba@example.com", "password": "wrong-password"},
    )
    assert bad.status_code == 401

    login = await client.post(
        "/api/auth/login",
        json={"email": "NADIA.BAMBA@example.com", "password": "motdepasse123"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert me.status_code == 200
    assert me.json()["full_name"] == "Nadia Bamba"


@pytest.mark.asyncio
async def test_roles_are_read_from_storage(client, auth, admin, club, make_user):
    secretary = await make_user()
    await client.post(
        f"/api/clubs/{club.id}/membres/",
        json={"user_id": str(secretary.id)},
        headers=auth(admin),
    )
    headers = auth(secretary)
    payload = {"year": 2025, "start_date": "2025-07-01", "end_date": "2026-06-30"}

    denied = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=payload, headers=headers
    )
    assert denied.status_code == 403

    granted = await client.put(
        f"/api/users/{secretary.id}/roles",
        json={"roles": [RoleType.secretary.value]},
        headers=auth(admin),
    )
    assert granted.status_code == 200

    # same token, role picked up from the account
    allowed = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=payload, headers=headers
    )
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_member_directory(client, auth, club, member, president):
    response = await client.get(
        f"/api/clubs/{club.id}/membres/",
        params={"orderBy": "nom", "recherche": "yao"},
        headers=auth(president),
    )

    assert response.status_code == 200
    assert [m["user_id"] for m in response.json()] == [str(member.id)]
    assert response.headers["X-Total-Count"] == "1"


@pytest.mark.asyncio
async def test_duplicate_membership(client, auth, club, member, president):
    response = await client.post(
        f"/api/clubs/{club.id}/membres/",
        json={"user_id": str(member.id)},
        headers=auth(president),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_comite_members_must_belong_to_club(
    client, auth, admin, club, president, member, make_mandat, make_user
):
    mandat = await make_mandat(club)
    base = f"/api/clubs/{club.id}/mandats/{mandat.id}/comites"

    fonction = await client.post(
        "/api/fonctions/", json={"name": "Protocole"}, headers=auth(admin)
    )
    assert fonction.status_code == 201

    comite = await client.post(
        f"{base}/", json={"name": "Comité gala"}, headers=auth(president)
    )
    assert comite.status_code == 201
    comite_id = comite.json()["id"]

    added = await client.post(
        f"{base}/{comite_id}/membres",
        json={"user_id": str(member.id), "fonction_id": fonction.json()["id"]},
        headers=auth(president),
    )
    assert added.status_code == 201
    assert added.json()["members"][0]["fonction"] == "Protocole"

    outsider = await make_user()
    rejected = await client.post(
        f"{base}/{comite_id}/membres",
        json={"user_id": str(outsider.id)},
        headers=auth(president),
    )
    assert rejected.status_code == 400
