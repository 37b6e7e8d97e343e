from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from tbg.roster import Activity, Group, Participant


HOTS = Activity(activity_id="act_hots", name="HOTS", category="MOBA")
CHESS = Activity(activity_id="act_chess", name="Chess", category="Board")


class ScriptedRandomSource:
    """Replays a fixed sequence of ``rand()`` values, cycling when exhausted."""

    def __init__(self, values: Sequence[float]) -> None:
        self._values = list(values) or [0.0]
        self._position = 0
        self.calls = 0

    def rand(self) -> float:
        value = self._values[self._position % len(self._values)]
        self._position += 1
        self.calls += 1
        return value


def make_participant(tag: str, rating: int, activity: Activity = HOTS) -> Participant:
    participant = Participant(participant_id=f"id_{tag}", tag=tag)
    if rating:
        participant.rate(activity, rating)
    return participant


def make_pool(ratings: Sequence[int], activity: Activity = HOTS, prefix: str = "P") -> list[Participant]:
    return [make_participant(f"{prefix}{i}", rating, activity) for i, rating in enumerate(ratings)]


def make_group(ratings: Sequence[int], target_size: int, activity: Activity = HOTS, prefix: str = "M") -> Group:
    group = Group.create(f"Group {prefix}", target_size, activity)
    for participant in make_pool(ratings, activity, prefix):
        assert group.add_primary(participant)
    return group


def member_ids(groups: Sequence[Group]) -> list[str]:
    return sorted(p.participant_id for g in groups for p in g.members)


def write_roster(path: Path, ratings: Sequence[int]) -> Path:
    document = {
        "games": [{"id": HOTS.activity_id, "name": HOTS.name, "genre": HOTS.category}],
        "players": [
            {
                "id": f"id_P{i}",
                "tag": f"P{i}",
                "first_name": "",
                "last_name": "",
                "skills": [{"id": f"skill_{i}", "game_id": HOTS.activity_id, "skill_level": rating}],
            }
            for i, rating in enumerate(ratings)
        ],
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path
