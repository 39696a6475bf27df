from collections import Counter

import pytest

from club_manager.gala.crud import tickets as ticket_crud
from club_manager.gala.models import GalaTicket


@pytest.fixture
def gala_url(club):
    return f"/api/clubs/{club.id}/galas"


async def create_gala(client, auth, user, gala_url, **fields):
    payload = {
        "label": "Gala de la Rose",
        "date": "2026-02-14T20:00:00",
        "ticket_books": 10,
        "tickets_per_book": 20,
    }
    payload.update(fields)
    response = await client.post(f"{gala_url}/", json=payload, headers=auth(user))
    assert response.status_code == 201, response.text
    return response.json()


async def create_tables(client, auth, user, base, *labels):
    tables = []
    for label in labels:
        response = await client.post(
            f"{base}/tables", json={"label": label}, headers=auth(user)
        )
        assert response.status_code == 201, response.text
        tables.append(response.json())
    return tables


async def create_invites(client, auth, user, base, *names):
    invites = []
    for name in names:
        response = await client.post(
            f"{base}/invites", json={"full_name": name}, headers=auth(user)
        )
        assert response.status_code == 201, response.text
        invites.append(response.json())
    return invites


@pytest.mark.asyncio
async def test_gala_tickets_available(client, auth, president, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    assert gala["tickets_available"] == 200
    assert gala["version"] == 1


@pytest.mark.asyncio
async def test_same_label_same_day_is_a_duplicate(client, auth, president, gala_url):
    await create_gala(client, auth, president, gala_url)
    response = await client.post(
        f"{gala_url}/",
        json={"label": "gala de la rose", "date": "2026-02-14T22:00:00"},
        headers=auth(president),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invite_sits_at_one_table(client, auth, president, member, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    table_a, table_b = await create_tables(
        client, auth, president, base, "Table A", "Table B"
    )
    (invite,) = await create_invites(client, auth, president, base, "Awa Kone")

    first = await client.post(
        f"{base}/affectations",
        json={"gala_table_id": table_a["id"], "gala_invite_id": invite["id"]},
        headers=auth(president),
    )
    assert first.status_code == 201
    assert first.json()["table_label"] == "Table A"
    assert first.json()["invite_full_name"] == "Awa Kone"

    second = await client.post(
        f"{base}/affectations",
        json={"gala_table_id": table_b["id"], "gala_invite_id": invite["id"]},
        headers=auth(president),
    )
    assert second.status_code == 400
    body = second.json()
    assert "Table A" in body["message"]
    assert body["details"]["table_label"] == "Table A"

    seated = await client.get(f"{base}/invites/{invite['id']}", headers=auth(member))
    assert seated.json()["table_label"] == "Table A"


@pytest.mark.asyncio
async def test_move_keeps_assignment_date(client, auth, president, member, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    table_a, table_b = await create_tables(
        client, auth, president, base, "Table A", "Table B"
    )
    (invite,) = await create_invites(client, auth, president, base, "Marc Yao")

    created = await client.post(
        f"{base}/affectations",
        json={"gala_table_id": table_a["id"], "gala_invite_id": invite["id"]},
        headers=auth(president),
    )
    affectation = created.json()

    moved = await client.put(
        f"{base}/affectations/{affectation['id']}",
        json={"gala_table_id": table_b["id"]},
        headers=auth(president),
    )
    assert moved.status_code == 200
    assert moved.json()["table_label"] == "Table B"
    assert moved.json()["assigned_at"][:19] == affectation["assigned_at"][:19]

    detail = await client.get(f"{base}/tables/{table_b['id']}", headers=auth(member))
    assert [i["full_name"] for i in detail.json()["invites"]] == ["Marc Yao"]
    assert detail.json()["invites_count"] == 1


@pytest.mark.asyncio
async def test_bulk_affectations_partial_success(client, auth, president, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    table_a, table_b = await create_tables(
        client, auth, president, base, "Table A", "Table B"
    )
    first, second = await create_invites(
        client, auth, president, base, "Awa Kone", "Paul Kouassi"
    )

    response = await client.post(
        f"{base}/affectations/bulk",
        json={
            "affectations": [
                {"gala_table_id": table_a["id"], "gala_invite_id": first["id"]},
                {"gala_table_id": table_b["id"], "gala_invite_id": first["id"]},
                {"gala_table_id": table_b["id"], "gala_invite_id": second["id"]},
            ]
        },
        headers=auth(president),
    )

    assert response.status_code == 200
    result = response.json()
    assert result["total"] == 3
    assert result["created"] == 2
    assert len(result["errors"]) == 1
    assert result["errors"][0]["index"] == 1
    assert "Table A" in result["errors"][0]["message"]

    listed = await client.get(f"{base}/affectations", headers=auth(president))
    assert len(listed.json()) == 2


@pytest.mark.asyncio
async def test_automatic_distribution(client, auth, president, member, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    await create_tables(client, auth, president, base, "Table C", "Table A", "Table B")
    names = [f"Invite {n}" for n in range(1, 8)]
    await create_invites(client, auth, president, base, *names)

    response = await client.post(
        f"{base}/affectations/repartition-automatique", headers=auth(president)
    )

    assert response.status_code == 200
    result = response.json()
    assert result["invites_processed"] == 7
    assert result["tables_used"] == 3
    assert result["affectations_created"] == 7

    response = await client.get(f"{base}/affectations", headers=auth(member))
    affectations = response.json()
    counts = Counter(a["table_label"] for a in affectations)
    assert counts == {"Table A": 3, "Table B": 2, "Table C": 2}
    assert len({a["assigned_at"] for a in affectations}) == 1

    by_invite = {a["invite_full_name"]: a["table_label"] for a in affectations}
    assert by_invite["Invite 1"] == "Table A"
    assert by_invite["Invite 2"] == "Table B"
    assert by_invite["Invite 3"] == "Table C"
    assert by_invite["Invite 4"] == "Table A"

    unseated = await client.get(f"{base}/invites/sans-table", headers=auth(member))
    assert unseated.json() == []

    again = await client.post(
        f"{base}/affectations/repartition-automatique", headers=auth(president)
    )
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_distribution_needs_a_table(client, auth, president, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    await create_invites(client, auth, president, base, "Awa Kone")

    response = await client.post(
        f"{base}/affectations/repartition-automatique", headers=auth(president)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_table_with_guests_cannot_be_deleted(client, auth, president, gala_url):
    gala = await create_gala(client, auth, president, gala_url)
    base = f"{gala_url}/{gala['id']}"
    (table,) = await create_tables(client, auth, president, base, "Table A")
    await create_invites(client, auth, president, base, "Awa Kone")
    await client.post(
        f"{base}/affectations/repartition-automatique", headers=auth(president)
    )

    response = await client.delete(
        f"{base}/tables/{table['id']}", headers=auth(president)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_ticket_statistics(
    client, auth, president, treasurer, member, make_user, gala_url
):
    gala = await create_gala(client, auth, president, gala_url)
    tickets_url = f"{gala_url}/{gala['id']}/tickets"

    sold_by_member = await client.post(
        f"{tickets_url}/",
        json={"user_id": str(member.id), "quantity": 30},
        headers=auth(treasurer),
    )
    assert sold_by_member.status_code == 201
    assert sold_by_member.json()["seller_name"] == "Marc Yao"

    sold_outside = await client.post(
        f"{tickets_url}/",
        json={"external_name": "Librairie de France", "quantity": 20},
        headers=auth(treasurer),
    )
    assert sold_outside.status_code == 201

    duplicate = await client.post(
        f"{tickets_url}/",
        json={"user_id": str(member.id), "quantity": 5},
        headers=auth(treasurer),
    )
    assert duplicate.status_code == 400

    outsider = await make_user()
    not_a_member = await client.post(
        f"{tickets_url}/",
        json={"user_id": str(outsider.id), "quantity": 5},
        headers=auth(treasurer),
    )
    assert not_a_member.status_code == 400

    no_seller = await client.post(
        f"{tickets_url}/", json={"quantity": 5}, headers=auth(treasurer)
    )
    assert no_seller.status_code == 400

    stats = (
        await client.get(f"{tickets_url}/statistiques", headers=auth(member))
    ).json()
    assert stats["tickets_available"] == 200
    assert stats["tickets_sold"] == 50
    assert stats["tickets_remaining"] == 150
    assert stats["percent_sold"] == 25
    assert stats["participants"] == 2
    assert stats["average_per_participant"] == 25

    top = (
        await client.get(
            f"{tickets_url}/top-vendeurs", params={"limit": 1}, headers=auth(member)
        )
    ).json()
    assert len(top) == 1
    assert top[0]["seller_name"] == "Marc Yao"
    assert top[0]["percent_of_sold"] == 60


@pytest.mark.asyncio
async def test_ticket_bulk_reports_lines_without_seller(
    client, auth, treasurer, member, president, gala_url
):
    gala = await create_gala(client, auth, president, gala_url)
    tickets_url = f"{gala_url}/{gala['id']}/tickets"

    response = await client.post(
        f"{tickets_url}/bulk",
        json={
            "tickets": [
                {"user_id": str(member.id), "quantity": 10},
                {"quantity": 3},
                {"external_name": "Pharmacie du Plateau", "quantity": 4},
            ]
        },
        headers=auth(treasurer),
    )

    assert response.status_code == 200, response.text
    result = response.json()
    assert result["total"] == 3
    assert result["created"] == 2
    assert len(result["errors"]) == 1
    assert result["errors"][0]["index"] == 1

    stats = (
        await client.get(f"{tickets_url}/statistiques", headers=auth(member))
    ).json()
    assert stats["tickets_sold"] == 14


@pytest.mark.asyncio
async def test_lost_uniqueness_race_is_a_conflict(
    client, auth, session, treasurer, president, member, gala_url, monkeypatch
):
    gala = await create_gala(client, auth, president, gala_url)
    real_add_line = ticket_crud.add_line

    async def add_line_after_concurrent_sale(db, model, club_id, gala_id, data):
        line = await real_add_line(db, model, club_id, gala_id, data)
        session.add(GalaTicket(gala_id=gala_id, user_id=data.user_id, quantity=2))
        await session.commit()
        return line

    monkeypatch.setattr(ticket_crud, "add_line", add_line_after_concurrent_sale)

    response = await client.post(
        f"{gala_url}/{gala['id']}/tickets/",
        json={"user_id": str(member.id), "quantity": 5},
        headers=auth(treasurer),
    )

    assert response.status_code == 409
    assert response.json()["error"] == "DATABASE_INTEGRITY_ERROR"


@pytest.mark.asyncio
async def test_raffle_ledger(
    client, auth, president, treasurer, member, make_user, gala_url
):
    gala = await create_gala(
        client, auth, president, gala_url, raffle_books=5, raffle_tickets_per_book=40
    )
    assert gala["raffle_tickets_available"] == 200
    raffle_url = f"{gala_url}/{gala['id']}/tombolas"

    sold = await client.post(
        raffle_url,
        json={"user_id": str(member.id), "quantity": 40},
        headers=auth(treasurer),
    )
    assert sold.status_code == 201, sold.text
    assert sold.json()["seller_name"] == "Marc Yao"

    duplicate = await client.post(
        raffle_url,
        json={"user_id": str(member.id), "quantity": 1},
        headers=auth(treasurer),
    )
    assert duplicate.status_code == 400

    forbidden = await client.post(
        raffle_url,
        json={"external_name": "Boutique", "quantity": 1},
        headers=auth(member),
    )
    assert forbidden.status_code == 403

    outsider = await make_user()
    bulk = await client.post(
        f"{raffle_url}/bulk",
        json={
            "tickets": [
                {"external_name": "Boutique Akwaba", "quantity": 10},
                {"user_id": str(outsider.id), "quantity": 5},
            ]
        },
        headers=auth(treasurer),
    )
    assert bulk.status_code == 200
    assert bulk.json()["created"] == 1
    assert bulk.json()["errors"][0]["index"] == 1

    line_url = f"{raffle_url}/{sold.json()['id']}"
    updated = await client.put(
        line_url, json={"quantity": 30}, headers=auth(treasurer)
    )
    assert updated.status_code == 200
    assert updated.json()["quantity"] == 30

    stats = (
        await client.get(f"{raffle_url}/statistiques", headers=auth(member))
    ).json()
    assert stats["tickets_available"] == 200
    assert stats["tickets_sold"] == 40
    assert stats["tickets_remaining"] == 160
    assert stats["percent_sold"] == 20
    assert stats["participants"] == 2

    top = (
        await client.get(
            f"{raffle_url}/top-vendeurs", params={"limit": 1}, headers=auth(member)
        )
    ).json()
    assert top[0]["seller_name"] == "Marc Yao"
    assert top[0]["percent_of_sold"] == 75

    by_member = await client.get(
        f"{gala_url}/tombolas/membres/{member.id}", headers=auth(member)
    )
    assert by_member.status_code == 200
    assert [line["quantity"] for line in by_member.json()] == [30]

    tickets = (
        await client.get(f"{gala_url}/{gala['id']}/tickets/", headers=auth(member))
    ).json()
    assert tickets == []

    deleted = await client.delete(line_url, headers=auth(treasurer))
    assert deleted.status_code == 204
    missing = await client.get(line_url, headers=auth(member))
    assert missing.status_code == 404
