import uuid

import pytest

from club_manager.clubs.models import RoleType
from club_manager.core.access import (
    POLICIES,
    Caller,
    can_access_club,
    can_manage_club,
)

NIL = "00000000-0000-0000-0000-000000000000"


def caller_of(user):
    return Caller(user_id=user.id, roles=user.role_set)


@pytest.mark.asyncio
async def test_member_reads_own_club(client, auth, club, member):
    response = await client.get(f"/api/clubs/{club.id}/mandats/", headers=auth(member))
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_non_member_is_denied(client, auth, club, make_user):
    outsider = await make_user(RoleType.president)

    response = await client.get(
        f"/api/clubs/{club.id}/mandats/", headers=auth(outsider)
    )

    assert response.status_code == 403
    assert response.json()["error"] == "AUTHORIZATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_club_is_denied_before_lookup(client, auth, member):
    response = await client.get(
        f"/api/clubs/{uuid.uuid4()}/mandats/", headers=auth(member)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_gets_not_found_for_unknown_club(client, auth, admin):
    response = await client.get(
        f"/api/clubs/{uuid.uuid4()}/mandats/", headers=auth(admin)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_nil_club_identifier(client, auth, admin):
    response = await client.get(f"/api/clubs/{NIL}/mandats/", headers=auth(admin))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_anonymous_and_inactive_callers(
    client, auth, club, make_user, add_member
):
    response = await client.get(f"/api/clubs/{club.id}/mandats/")
    assert response.status_code == 401

    disabled = await make_user(RoleType.president, is_active=False)
    await add_member(club, disabled)
    response = await client.get(
        f"/api/clubs/{club.id}/mandats/", headers=auth(disabled)
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(client, club):
    response = await client.get(
        f"/api/clubs/{club.id}/mandats/",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_management_requires_a_policy_role(client, auth, club, member, president):
    payload = {"year": 2025, "start_date": "2025-07-01", "end_date": "2026-06-30"}

    response = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=payload, headers=auth(member)
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/clubs/{club.id}/mandats/", json=payload, headers=auth(president)
    )
    assert response.status_code == 201
    assert response.json()["is_current"] is True


@pytest.mark.asyncio
async def test_role_outside_the_club_grants_nothing(client, auth, club, make_user):
    president_elsewhere = await make_user(RoleType.president)
    payload = {"year": 2025, "start_date": "2025-07-01", "end_date": "2026-06-30"}

    response = await client.post(
        f"/api/clubs/{club.id}/mandats/",
        json=payload,
        headers=auth(president_elsewhere),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_passes_every_policy(session, club, admin):
    caller = caller_of(admin)
    assert await can_access_club(session, caller, club.id)
    for policy_key in POLICIES:
        assert await can_manage_club(session, caller, club.id, policy_key)


@pytest.mark.asyncio
async def test_managing_implies_access(session, club, president, treasurer, member):
    for user in (president, treasurer, member):
        caller = caller_of(user)
        for policy_key in POLICIES:
            if await can_manage_club(session, caller, club.id, policy_key):
                assert await can_access_club(session, caller, club.id)


@pytest.mark.asyncio
async def test_adding_admin_never_removes_access(session, club, make_user):
    outsider = await make_user(RoleType.treasurer)
    caller = caller_of(outsider)
    promoted = Caller(user_id=outsider.id, roles=caller.roles | {RoleType.admin})

    for policy_key in POLICIES:
        before = await can_manage_club(session, caller, club.id, policy_key)
        after = await can_manage_club(session, promoted, club.id, policy_key)
        assert after or not before


@pytest.mark.asyncio
async def test_anonymous_caller(session, club):
    anonymous = Caller(user_id=None)
    assert not await can_access_club(session, anonymous, club.id)
    assert not await can_access_club(session, None, club.id)
    assert not await can_manage_club(session, anonymous, club.id, ("budget", "manage"))


@pytest.mark.asyncio
async def test_treasurer_policies(session, club, treasurer):
    caller = caller_of(treasurer)
    assert await can_manage_club(session, caller, club.id, ("budget", "manage"))
    assert await can_manage_club(session, caller, club.id, ("gala_tickets", "manage"))
    assert not await can_manage_club(session, caller, club.id, ("mandats", "manage"))
    assert not await can_manage_club(session, caller, club.id, ("events", "delete"))
