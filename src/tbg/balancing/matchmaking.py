from __future__ import annotations

from typing import Sequence

from tbg.roster import Group, Match


def pair_matches(groups: Sequence[Group]) -> list[Match]:
    """Pair consecutive groups as opponents; an odd last group gets a bye."""
    matches: list[Match] = []
    for i in range(0, len(groups), 2):
        opponent = groups[i + 1] if i + 1 < len(groups) else None
        matches.append(Match.create(groups[i], opponent))
    return matches
