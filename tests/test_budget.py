import pytest


async def create_hierarchy(client, auth, admin, treasurer, club):
    budget_type = await client.post(
        "/api/types-budget/", json={"label": "Dépenses"}, headers=auth(admin)
    )
    assert budget_type.status_code == 201
    category = await client.post(
        f"/api/types-budget/{budget_type.json()['id']}/categories",
        json={"label": "Fonctionnement"},
        headers=auth(admin),
    )
    assert category.status_code == 201
    sous_category = await client.post(
        f"/api/clubs/{club.id}/sous-categories-budget/",
        json={"label": "Fournitures", "category_id": category.json()["id"]},
        headers=auth(treasurer),
    )
    assert sous_category.status_code == 201
    return sous_category.json()


async def create_rubrique(client, auth, user, club, mandat, sous_category, **fields):
    payload = {"sous_category_id": sous_category["id"], **fields}
    response = await client.post(
        f"/api/clubs/{club.id}/mandats/{mandat.id}/rubriques/",
        json=payload,
        headers=auth(user),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def record(client, auth, user, club, rubrique, amount, day="2025-09-01"):
    response = await client.post(
        f"/api/clubs/{club.id}/rubriques/{rubrique['id']}/realisations/",
        json={"date": day, "amount": amount},
        headers=auth(user),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_sous_category_carries_its_hierarchy(
    client, auth, admin, treasurer, club
):
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)

    assert sous_category["club_id"] == str(club.id)
    assert sous_category["category_label"] == "Fonctionnement"
    assert sous_category["type_budget_label"] == "Dépenses"

    duplicate = await client.post(
        f"/api/clubs/{club.id}/sous-categories-budget/",
        json={"label": "fournitures", "category_id": sous_category["category_id"]},
        headers=auth(treasurer),
    )
    assert duplicate.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_budget_type(client, auth, admin):
    await client.post(
        "/api/types-budget/", json={"label": "Recettes"}, headers=auth(admin)
    )
    response = await client.post(
        "/api/types-budget/", json={"label": "RECETTES"}, headers=auth(admin)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_realized_amount_is_the_sum_of_realisations(
    client, auth, admin, treasurer, club, make_mandat
):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    rubrique = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Papeterie", unit_price=250, quantity=4,
    )
    assert rubrique["planned_amount"] == 1000
    assert rubrique["realized_amount"] == 0
    assert rubrique["status"] == "Sous-consommé"

    first = await record(client, auth, treasurer, club, rubrique, 700)
    await record(client, auth, treasurer, club, rubrique, 500, "2025-10-01")

    url = f"/api/clubs/{club.id}/mandats/{mandat.id}/rubriques/{rubrique['id']}"
    data = (await client.get(url, headers=auth(treasurer))).json()
    assert data["realized_amount"] == 1200
    assert data["variance"] == 200
    assert data["percent_realized"] == 120
    assert data["status"] == "Dépassement"

    response = await client.delete(
        f"/api/clubs/{club.id}/rubriques/{rubrique['id']}/realisations/{first['id']}",
        headers=auth(treasurer),
    )
    assert response.status_code == 204

    data = (await client.get(url, headers=auth(treasurer))).json()
    assert data["realized_amount"] == 500
    assert data["status"] == "Sous-consommé"


@pytest.mark.asyncio
async def test_realisation_rules(
    client, auth, admin, treasurer, member, club, make_mandat
):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    rubrique = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Location salle", unit_price=100,
    )
    url = f"/api/clubs/{club.id}/rubriques/{rubrique['id']}/realisations/"

    response = await client.post(
        url, json={"date": "2025-09-01", "amount": 0}, headers=auth(treasurer)
    )
    assert response.status_code == 400

    response = await client.post(
        url, json={"date": "2025-09-01", "amount": 50}, headers=auth(member)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_budget_report(client, auth, admin, treasurer, member, club, make_mandat):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    papeterie = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Papeterie", unit_price=250, quantity=4,
    )
    await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Traiteur", unit_price=500,
    )
    await record(client, auth, treasurer, club, papeterie, 1200)

    url = f"/api/clubs/{club.id}/mandats/{mandat.id}/budget-rapport/"
    response = await client.get(
        url, params={"pageSize": 1, "orderBy": "montantprevu"}, headers=auth(member)
    )

    assert response.status_code == 200
    assert response.headers["X-Total-Count"] == "2"
    assert response.headers["X-Total-Pages"] == "2"
    report = response.json()
    assert report["mandat_year"] == 2025
    assert report["total_lines"] == 2
    assert [line["rubrique"] for line in report["lines"]] == ["Traiteur"]
    assert report["totals"]["planned"] == 1500
    assert report["totals"]["realized"] == 1200
    assert report["totals"]["percent_realized"] == 80
    assert report["totals"]["status"] == "En cours"
    assert len(report["by_type"]) == 1
    assert report["by_type"][0]["type_budget"] == "Dépenses"
    assert report["by_type"][0]["lines_count"] == 2

    searched = await client.get(
        url, params={"recherche": "papet"}, headers=auth(member)
    )
    assert [line["rubrique"] for line in searched.json()["lines"]] == ["Papeterie"]
    assert searched.json()["totals"]["planned"] == 1000


@pytest.mark.asyncio
async def test_budget_report_csv(client, auth, admin, treasurer, club, make_mandat):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    papeterie = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Papeterie", unit_price=250, quantity=4,
    )
    await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Traiteur", unit_price=500,
    )
    await record(client, auth, treasurer, club, papeterie, 1200)

    response = await client.get(
        f"/api/clubs/{club.id}/mandats/{mandat.id}/budget-rapport/export",
        headers=auth(treasurer),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    rows = response.text.splitlines()
    assert rows[0].startswith("Type budget;Catégorie")
    assert len(rows) == 4
    assert rows[-1] == "TOTAL;;;;;;1500.00;1200.00;-300.00;80.00;En cours"


@pytest.mark.asyncio
async def test_rubrique_statistics(client, auth, admin, treasurer, club, make_mandat):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    papeterie = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Papeterie", unit_price=250, quantity=4,
    )
    await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Traiteur", unit_price=500,
    )
    await record(client, auth, treasurer, club, papeterie, 600)
    await record(client, auth, treasurer, club, papeterie, 300)

    response = await client.get(
        f"/api/clubs/{club.id}/mandats/{mandat.id}/rubriques/statistiques",
        headers=auth(treasurer),
    )

    assert response.status_code == 200
    stats = response.json()
    assert stats["lines_count"] == 2
    assert stats["realisations_count"] == 2
    assert stats["by_status"] == {
        "Dépassement": 0,
        "En cours": 1,
        "Sous-consommé": 1,
    }


@pytest.mark.asyncio
async def test_sous_category_in_use_cannot_be_deleted(
    client, auth, admin, treasurer, club, make_mandat
):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Papeterie", unit_price=10,
    )

    response = await client.delete(
        f"/api/clubs/{club.id}/sous-categories-budget/{sous_category['id']}",
        headers=auth(treasurer),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "BUSINESS_LOGIC_ERROR"


@pytest.mark.asyncio
async def test_edited_realisation_updates_realized_amount(
    client, auth, admin, treasurer, member, club, make_mandat
):
    mandat = await make_mandat(club)
    sous_category = await create_hierarchy(client, auth, admin, treasurer, club)
    rubrique = await create_rubrique(
        client, auth, treasurer, club, mandat, sous_category,
        label="Traiteur", unit_price=1000,
    )
    spend = await record(client, auth, treasurer, club, rubrique, 400)
    await record(client, auth, treasurer, club, rubrique, 100, "2025-10-01")

    realisation_url = (
        f"/api/clubs/{club.id}/rubriques/{rubrique['id']}/realisations/{spend['id']}"
    )
    forbidden = await client.put(
        realisation_url, json={"amount": 900}, headers=auth(member)
    )
    assert forbidden.status_code == 403

    response = await client.put(
        realisation_url,
        json={"amount": 750, "comment": "Facture finale"},
        headers=auth(treasurer),
    )
    assert response.status_code == 200, response.text
    assert response.json()["amount"] == 750
    assert response.json()["date"] == "2025-09-01"
    assert response.json()["comment"] == "Facture finale"

    url = f"/api/clubs/{club.id}/mandats/{mandat.id}/rubriques/{rubrique['id']}"
    data = (await client.get(url, headers=auth(treasurer))).json()
    assert data["realized_amount"] == 850
    assert data["percent_realized"] == 85
    assert data["status"] == "En cours"

    invalid = await client.put(
        realisation_url, json={"amount": 0}, headers=auth(treasurer)
    )
    assert invalid.status_code == 400
