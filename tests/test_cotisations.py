import pytest


@pytest.mark.asyncio
async def test_member_dues_situation(
    client, auth, treasurer, member, club, make_mandat
):
    mandat_2024 = await make_mandat(club, 2024, is_current=False, dues_amount=150)
    mandat_2025 = await make_mandat(club, 2025, dues_amount=200)
    url = f"/api/clubs/{club.id}/membres/{member.id}/situation-cotisation"

    situation = (await client.get(url, headers=auth(member))).json()
    assert situation["status"] == "Aucune cotisation"

    for mandat in (mandat_2024, mandat_2025):
        response = await client.post(
            f"/api/clubs/{club.id}/cotisations",
            json={"user_id": str(member.id), "mandat_id": str(mandat.id)},
            headers=auth(treasurer),
        )
        assert response.status_code == 201
    assert response.json()["amount"] == 200

    situation = (await client.get(url, headers=auth(member))).json()
    assert situation["total_due"] == 350
    assert situation["status"] == "En retard"

    await client.post(
        f"/api/clubs/{club.id}/paiements-cotisation",
        json={"user_id": str(member.id), "amount": 100, "paid_on": "2025-08-01"},
        headers=auth(treasurer),
    )
    situation = (await client.get(url, headers=auth(member))).json()
    assert situation["balance"] == 250
    assert situation["status"] == "Partiellement payé"

    await client.post(
        f"/api/clubs/{club.id}/paiements-cotisation",
        json={"user_id": str(member.id), "amount": 250, "paid_on": "2025-09-01"},
        headers=auth(treasurer),
    )
    situation = (await client.get(url, headers=auth(member))).json()
    assert situation["balance"] == 0
    assert situation["status"] == "À jour"
    assert situation["paiements_count"] == 2


@pytest.mark.asyncio
async def test_one_cotisation_per_mandat(
    client, auth, treasurer, member, club, make_mandat
):
    mandat = await make_mandat(club, dues_amount=200)
    payload = {"user_id": str(member.id), "mandat_id": str(mandat.id), "amount": 180}

    first = await client.post(
        f"/api/clubs/{club.id}/cotisations", json=payload, headers=auth(treasurer)
    )
    assert first.status_code == 201
    assert first.json()["amount"] == 180

    second = await client.post(
        f"/api/clubs/{club.id}/cotisations", json=payload, headers=auth(treasurer)
    )
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_dues_only_for_members(
    client, auth, treasurer, club, make_mandat, make_user
):
    mandat = await make_mandat(club)
    outsider = await make_user()

    response = await client.post(
        f"/api/clubs/{club.id}/cotisations",
        json={"user_id": str(outsider.id), "mandat_id": str(mandat.id)},
        headers=auth(treasurer),
    )
    assert response.status_code == 400
