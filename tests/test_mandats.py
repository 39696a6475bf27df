import pytest


def mandat_payload(year):
    return {
        "year": year,
        "start_date": f"{year}-07-01",
        "end_date": f"{year + 1}-06-30",
        "dues_amount": 350,
    }


async def create_mandat(client, headers, club, year):
    response = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=mandat_payload(year), headers=headers
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_exactly_one_current_mandat(client, auth, club, president):
    headers = auth(president)
    first = await create_mandat(client, headers, club, 2024)
    second = await create_mandat(client, headers, club, 2025)
    assert second["is_current"] is True

    current = await client.get(f"/api/clubs/{club.id}/mandats/actuel", headers=headers)
    assert current.json()["id"] == second["id"]

    activated = await client.post(
        f"/api/clubs/{club.id}/mandats/{first['id']}/activer", headers=headers
    )
    assert activated.status_code == 200

    listing = await client.get(f"/api/clubs/{club.id}/mandats/", headers=headers)
    flags = {m["year"]: m["is_current"] for m in listing.json()}
    assert flags == {2024: True, 2025: False}


@pytest.mark.asyncio
async def test_mandat_rules(client, auth, club, president):
    headers = auth(president)
    await create_mandat(client, headers, club, 2025)

    duplicate = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=mandat_payload(2025), headers=headers
    )
    assert duplicate.status_code == 400

    reversed_dates = {**mandat_payload(2026), "end_date": "2026-01-01"}
    invalid = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=reversed_dates, headers=headers
    )
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_only_mandat_stays_current(client, auth, club, president):
    headers = auth(president)
    only = await create_mandat(client, headers, club, 2025)
    url = f"/api/clubs/{club.id}/mandats/{only['id']}"

    unset = await client.put(url, json={"is_current": False}, headers=headers)
    assert unset.status_code == 400

    deleted = await client.delete(url, headers=headers)
    assert deleted.status_code == 400
    assert deleted.json()["error"] == "BUSINESS_LOGIC_ERROR"


@pytest.mark.asyncio
async def test_deleting_current_mandat_hands_over(client, auth, club, president):
    headers = auth(president)
    await create_mandat(client, headers, club, 2023)
    await create_mandat(client, headers, club, 2024)
    latest = await create_mandat(client, headers, club, 2025)

    deleted = await client.delete(
        f"/api/clubs/{club.id}/mandats/{latest['id']}", headers=headers
    )
    assert deleted.status_code == 204

    current = await client.get(f"/api/clubs/{club.id}/mandats/actuel", headers=headers)
    assert current.json()["year"] == 2024
