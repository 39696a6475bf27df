import pytest


async def create_evenement(client, auth, user, club, **fields):
    payload = {"label": "Dîner de gala caritatif", "date": "2025-12-05T19:00:00"}
    payload.update(fields)
    response = await client.post(
        f"/api/clubs/{club.id}/evenements/", json=payload, headers=auth(user)
    )
    assert response.status_code == 201, response.text
    return response.json()


async def add_line(client, auth, user, club, evenement, label, planned, realized):
    response = await client.post(
        f"/api/clubs/{club.id}/evenements/{evenement['id']}/budgets",
        json={"label": label, "planned_amount": planned, "realized_amount": realized},
        headers=auth(user),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_synthese(client, auth, treasurer, member, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    base = f"/api/clubs/{club.id}/evenements/{evenement['id']}"

    traiteur = await add_line(
        client, auth, treasurer, club, evenement, "Traiteur", 1000, 900
    )
    assert traiteur["status"] == "En cours"
    await add_line(client, auth, treasurer, club, evenement, "Sono", 200, 300)

    batch = await client.post(
        f"{base}/recettes/batch",
        json={
            "recettes": [
                {"label": "Billetterie", "amount": 1500},
                {"label": "Dons", "amount": 100},
            ]
        },
        headers=auth(treasurer),
    )
    assert batch.status_code == 200
    assert batch.json()["created"] == 2
    assert batch.json()["errors"] == []

    response = await client.get(f"{base}/synthese", headers=auth(member))

    assert response.status_code == 200
    synthese = response.json()
    assert synthese["budget"]["planned"] == 1200
    assert synthese["budget"]["realized"] == 1200
    assert synthese["budget"]["percent_realized"] == 100
    assert synthese["result"]["total_revenue"] == 1600
    assert synthese["result"]["net_result"] == 400
    assert synthese["result"]["margin"] == 25
    assert synthese["result"]["is_profitable"] is True
    assert synthese["budget_lines_count"] == 2
    assert synthese["recettes_count"] == 2
    assert synthese["overrun_lines"] == 1
    assert synthese["under_consumed_lines"] == 0


@pytest.mark.asyncio
async def test_realized_amount_patch(client, auth, treasurer, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    line = await add_line(
        client, auth, treasurer, club, evenement, "Décoration", 400, 0
    )
    assert line["status"] == "Sous-consommé"

    response = await client.patch(
        f"/api/clubs/{club.id}/evenements/{evenement['id']}/budgets/{line['id']}"
        "/montant-realise",
        json={"realized_amount": 450},
        headers=auth(treasurer),
    )

    assert response.status_code == 200
    assert response.json()["realized_amount"] == 450
    assert response.json()["variance"] == 50
    assert response.json()["status"] == "Dépassement"


@pytest.mark.asyncio
async def test_duplicate_line_label(client, auth, treasurer, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    await add_line(client, auth, treasurer, club, evenement, "Traiteur", 100, 0)

    response = await client.post(
        f"/api/clubs/{club.id}/evenements/{evenement['id']}/budgets",
        json={"label": "traiteur", "planned_amount": 50},
        headers=auth(treasurer),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_requires_an_officer(client, auth, treasurer, president, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    url = f"/api/clubs/{club.id}/evenements/{evenement['id']}"

    assert (await client.delete(url, headers=auth(treasurer))).status_code == 403
    assert (await client.delete(url, headers=auth(president))).status_code == 204
    assert (await client.get(url, headers=auth(president))).status_code == 404


@pytest.mark.asyncio
async def test_stale_update(client, auth, treasurer, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    url = f"/api/clubs/{club.id}/evenements/{evenement['id']}"

    first = await client.put(
        url, json={"place": "Sofitel", "version": 1}, headers=auth(treasurer)
    )
    assert first.status_code == 200
    assert first.json()["version"] == 2

    second = await client.put(
        url, json={"place": "Pullman", "version": 1}, headers=auth(treasurer)
    )
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_list_filters_and_statistics(client, auth, treasurer, member, club):
    await create_evenement(
        client, auth, treasurer, club, label="AG", date="2025-01-10T18:00:00"
    )
    await create_evenement(
        client, auth, treasurer, club,
        label="Forum", date="2025-03-02T09:00:00", is_internal=False,
    )
    await create_evenement(
        client, auth, treasurer, club, label="Soirée", date="2024-11-20T20:00:00"
    )

    response = await client.get(
        f"/api/clubs/{club.id}/evenements/",
        params={"dateDebut": "2025-01-01", "dateFin": "2025-12-31"},
        headers=auth(member),
    )
    assert response.status_code == 200
    assert response.headers["X-Total-Count"] == "2"
    assert [e["label"] for e in response.json()] == ["Forum", "AG"]

    external = await client.get(
        f"/api/clubs/{club.id}/evenements/",
        params={"estInterne": "false"},
        headers=auth(member),
    )
    assert [e["label"] for e in external.json()] == ["Forum"]

    stats = await client.get(
        f"/api/clubs/{club.id}/evenements/statistiques",
        params={"annee": 2025},
        headers=auth(member),
    )
    assert stats.status_code == 200
    data = stats.json()
    assert data["total"] == 2
    assert data["internal"] == 1
    assert data["external"] == 1
    months = {item["month"]: item["count"] for item in data["per_month"]}
    assert months[1] == 1
    assert months[3] == 1
    assert months[12] == 0


@pytest.mark.asyncio
async def test_synthese_reads_are_stable(client, auth, treasurer, member, club):
    evenement = await create_evenement(client, auth, treasurer, club)
    base = f"/api/clubs/{club.id}/evenements/{evenement['id']}"
    await add_line(client, auth, treasurer, club, evenement, "Traiteur", 750, 600)
    await client.post(
        f"{base}/recettes/batch",
        json={"recettes": [{"label": "Billetterie", "amount": 333.33}]},
        headers=auth(treasurer),
    )

    first = await client.get(f"{base}/synthese", headers=auth(member))
    second = await client.get(f"{base}/synthese", headers=auth(member))

    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["result"]["net_result"] == -266.67
