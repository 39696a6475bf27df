from typing import List, Sequence, Tuple, TypeVar

Invite = TypeVar("Invite")
Table = TypeVar("Table")


def round_robin_assignments(
    invites: Sequence[Invite], tables: Sequence[Table]
) -> List[Tuple[Invite, Table]]:
    """
    Seat invites around the tables in turn: invite i goes to table i mod M.

    Every table ends up with floor(N/M) or ceil(N/M) invites.

    Raises:
        ValueError: no table to seat anyone at
    """
    if not tables:
        raise ValueError("At least one table is required")
    return [(invite, tables[i % len(tables)]) for i, invite in enumerate(invites)]
