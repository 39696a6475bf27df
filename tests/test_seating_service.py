from collections import Counter

import pytest

from club_manager.gala.services.seating import round_robin_assignments


def test_invites_are_seated_in_turn():
    assignments = round_robin_assignments(["a", "b", "c", "d", "e"], ["T1", "T2"])
    assert assignments == [
        ("a", "T1"),
        ("b", "T2"),
        ("c", "T1"),
        ("d", "T2"),
        ("e", "T1"),
    ]


@pytest.mark.parametrize("invites,tables", [(10, 3), (7, 7), (2, 5), (25, 4)])
def test_tables_are_balanced(invites, tables):
    assignments = round_robin_assignments(list(range(invites)), list(range(tables)))
    counts = Counter(table for _, table in assignments)

    assert len(assignments) == invites
    assert all(
        invites // tables <= count <= -(-invites // tables)
        for count in counts.values()
    )


def test_no_table():
    with pytest.raises(ValueError):
        round_robin_assignments(["a"], [])


def test_no_invite():
    assert round_robin_assignments([], ["T1"]) == []
