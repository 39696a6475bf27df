import json

import httpx
import pytest

from club_manager.core.notifications import (
    NotificationGateway,
    get_notification_gateway,
)
from club_manager.main import app


async def create_reunion(client, auth, admin, president, club, **fields):
    type_reunion = await client.post(
        "/api/types-reunion/",
        json={"label": "Réunion statutaire"},
        headers=auth(admin),
    )
    assert type_reunion.status_code == 201
    payload = {
        "type_reunion_id": type_reunion.json()["id"],
        "date": "2099-03-14",
        "time": "19:30:00",
        "place": "Hotel Ivoire",
    }
    payload.update(fields)
    response = await client.post(
        f"/api/clubs/{club.id}/reunions/", json=payload, headers=auth(president)
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_agenda_is_ordered(client, auth, admin, president, member, club):
    reunion = await create_reunion(client, auth, admin, president, club)
    base = f"/api/clubs/{club.id}/reunions/{reunion['id']}"

    for description in ("Lecture du PV", "Budget du gala"):
        response = await client.post(
            f"{base}/ordres-du-jour",
            json={"description": description},
            headers=auth(president),
        )
        assert response.status_code == 201

    detail = (await client.get(base, headers=auth(member))).json()
    assert detail["type_reunion"] == "Réunion statutaire"
    assert detail["ordres_du_jour_count"] == 2
    assert [o["description"] for o in detail["ordres_du_jour"]] == [
        "Lecture du PV",
        "Budget du gala",
    ]
    assert [o["position"] for o in detail["ordres_du_jour"]] == [1, 2]


@pytest.mark.asyncio
async def test_member_cannot_schedule(client, auth, admin, president, member, club):
    reunion = await create_reunion(client, auth, admin, president, club)

    response = await client.put(
        f"/api/clubs/{club.id}/reunions/{reunion['id']}",
        json={"place": "Sofitel"},
        headers=auth(member),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_upcoming_meetings(client, auth, admin, president, member, club):
    future = await create_reunion(client, auth, admin, president, club)
    await client.post(
        f"/api/clubs/{club.id}/reunions/",
        json={"type_reunion_id": future["type_reunion_id"], "date": "2020-01-10"},
        headers=auth(president),
    )

    response = await client.get(
        f"/api/clubs/{club.id}/reunions/prochaines", headers=auth(member)
    )

    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == [future["id"]]

    listed = await client.get(f"/api/clubs/{club.id}/reunions/", headers=auth(member))
    assert listed.headers["X-Total-Count"] == "2"


@pytest.mark.asyncio
async def test_compte_rendu_broadcast(
    client, auth, admin, president, treasurer, member, club
):
    reunion = await create_reunion(client, auth, admin, president, club)
    base = f"/api/clubs/{club.id}/reunions/{reunion['id']}"
    await client.post(
        f"{base}/ordres-du-jour",
        json={"description": "Budget du gala", "rapport": "Adopté"},
        headers=auth(president),
    )

    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        sent.append(payload)
        if payload["to"] == treasurer.email:
            return httpx.Response(503)
        return httpx.Response(202, json={"message_id": f"id-{len(sent)}"})

    gateway = NotificationGateway(
        base_url="https://gateway.test/messages",
        delay=0,
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_notification_gateway] = lambda: gateway

    response = await client.post(
        f"{base}/compte-rendu",
        json={"message": "Merci pour votre présence"},
        headers=auth(president),
    )

    assert response.status_code == 200
    result = response.json()
    assert result["reunion_id"] == reunion["id"]
    assert result["subject"].startswith(
        "Compte rendu - Réunion statutaire du 14/03/2099"
    )
    assert result["total"] == 3
    assert result["sent"] == 2
    assert result["failed"] == 1
    assert result["failures"][0]["address"] == treasurer.email

    assert {payload["to"] for payload in sent} == {
        president.email,
        treasurer.email,
        member.email,
    }
    assert "1. Budget du gala" in sent[0]["body"]
    assert "Merci pour votre présence" in sent[0]["body"]
