import pytest


async def schedule(client, auth, admin, president, club, *dates):
    type_reunion = await client.post(
        "/api/types-reunion/",
        json={"label": "Réunion statutaire"},
        headers=auth(admin),
    )
    assert type_reunion.status_code == 201
    reunions = []
    for day in dates:
        response = await client.post(
            f"/api/clubs/{club.id}/reunions/",
            json={
                "type_reunion_id": type_reunion.json()["id"],
                "date": day,
                "time": "19:30:00",
                "place": "Hotel Ivoire",
            },
            headers=auth(president),
        )
        assert response.status_code == 201, response.text
        reunions.append(response.json())
    return reunions


def reunion_url(club, reunion):
    return f"/api/clubs/{club.id}/reunions/{reunion['id']}"


@pytest.mark.asyncio
async def test_presences_and_statistics(
    client, auth, admin, president, treasurer, member, club, make_user, add_member
):
    previous, reunion = await schedule(
        client, auth, admin, president, club, "2099-03-07", "2099-03-14"
    )
    retired = await make_user(first_name="Ali", last_name="Bamba", is_active=False)
    await add_member(club, retired)

    await client.post(
        f"{reunion_url(club, previous)}/presences",
        json={"user_id": str(president.id)},
        headers=auth(president),
    )

    base = reunion_url(club, reunion)
    marked = await client.post(
        f"{base}/presences", json={"user_id": str(member.id)}, headers=auth(president)
    )
    assert marked.status_code == 201, marked.text
    assert marked.json()["full_name"] == "Marc Yao"

    again = await client.post(
        f"{base}/presences", json={"user_id": str(member.id)}, headers=auth(president)
    )
    assert again.status_code == 400

    inactive = await client.post(
        f"{base}/presences", json={"user_id": str(retired.id)}, headers=auth(president)
    )
    assert inactive.status_code == 400

    forbidden = await client.post(
        f"{base}/presences",
        json={"user_id": str(treasurer.id)},
        headers=auth(treasurer),
    )
    assert forbidden.status_code == 403

    outsider = await make_user()
    batch = await client.post(
        f"{base}/presences/batch",
        json={"user_ids": [str(president.id), str(outsider.id), str(member.id)]},
        headers=auth(president),
    )
    assert batch.status_code == 200
    assert batch.json()["total"] == 3
    assert batch.json()["created"] == 1
    assert [error["index"] for error in batch.json()["errors"]] == [1, 2]

    presences = (await client.get(f"{base}/presences", headers=auth(member))).json()
    assert len(presences) == 2

    stats = (
        await client.get(f"{base}/presences/statistiques", headers=auth(member))
    ).json()
    assert stats["active_members"] == 3
    assert stats["present"] == 2
    assert stats["absent"] == 1
    assert stats["attendance_rate"] == 66.67
    assert stats["type_average"] == 1
    assert stats["vs_type_average"] == 100

    removed = await client.delete(
        f"{base}/presences/membres/{member.id}", headers=auth(president)
    )
    assert removed.status_code == 204
    missing = await client.delete(
        f"{base}/presences/membres/{member.id}", headers=auth(president)
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_meeting_guests(client, auth, admin, president, member, club):
    (reunion,) = await schedule(client, auth, admin, president, club, "2099-03-14")
    guests_url = f"{reunion_url(club, reunion)}/invites"

    created = await client.post(
        guests_url,
        json={
            "first_name": "Awa",
            "last_name": "Kone",
            "email": "Awa.Kone@Example.com",
            "organisation": "Orange CI",
        },
        headers=auth(president),
    )
    assert created.status_code == 201, created.text
    guest = created.json()
    assert guest["full_name"] == "Awa Kone"
    assert guest["email"] == "awa.kone@example.com"

    duplicate = await client.post(
        guests_url,
        json={"first_name": "awa", "last_name": "KONE"},
        headers=auth(president),
    )
    assert duplicate.status_code == 400

    forbidden = await client.post(
        guests_url,
        json={"first_name": "Yves", "last_name": "Zadi"},
        headers=auth(member),
    )
    assert forbidden.status_code == 403

    batch = await client.post(
        f"{guests_url}/batch",
        json={
            "guests": [
                {
                    "first_name": "Jean",
                    "last_name": "Koffi",
                    "organisation": "Orange CI",
                },
                {"first_name": "Awa", "last_name": "Kone"},
                {"first_name": "Fatou", "last_name": "Diallo", "organisation": "SGBCI"},
            ]
        },
        headers=auth(president),
    )
    assert batch.status_code == 200
    assert batch.json()["created"] == 2
    assert batch.json()["errors"][0]["index"] == 1

    organisations = (
        await client.get(f"{guests_url}/organisations", headers=auth(member))
    ).json()
    assert organisations == [
        {"organisation": "Orange CI", "guests": 2},
        {"organisation": "SGBCI", "guests": 1},
    ]

    updated = await client.put(
        f"{guests_url}/{guest['id']}",
        json={"phone_number": "+225 07 01 02 03 04"},
        headers=auth(president),
    )
    assert updated.status_code == 200
    assert updated.json()["phone_number"] is not None
    assert updated.json()["organisation"] == "Orange CI"

    listed = (await client.get(guests_url, headers=auth(member))).json()
    assert len(listed) == 3

    deleted = await client.delete(
        f"{guests_url}/{guest['id']}", headers=auth(president)
    )
    assert deleted.status_code == 204
    missing = await client.get(f"{guests_url}/{guest['id']}", headers=auth(member))
    assert missing.status_code == 404
