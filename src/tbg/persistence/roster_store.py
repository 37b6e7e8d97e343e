from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from tbg.roster import Activity, Participant, RatingAssessment


@dataclass(slots=True)
class RosterDocument:
    """JSON roster with ``players`` and ``games`` arrays.

    Games are rehydrated before players so every skill entry can be linked to
    its activity by id.
    """

    participants: list[Participant] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @staticmethod
    def load(path: Path) -> RosterDocument:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"roster document {path} is not valid JSON: {exc}") from exc
        return RosterDocument.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "players": [
                {
                    "id": p.participant_id,
                    "tag": p.tag,
                    "first_name": p.first_name,
                    "last_name": p.last_name,
                    "skills": [
                        {"id": a.assessment_id, "game_id": a.activity.activity_id, "skill_level": a.rating}
                        for a in p.assessments.values()
                    ],
                }
                for p in self.participants
            ],
            "games": [{"id": a.activity_id, "name": a.name, "genre": a.category} for a in self.activities],
        }

    @staticmethod
    def from_dict(data: Any) -> RosterDocument:
        if not isinstance(data, dict):
            raise ValueError("roster document must be a JSON object")
        raw_players = data.get("players", [])
        raw_games = data.get("games", [])
        if not isinstance(raw_players, list) or not isinstance(raw_games, list):
            raise ValueError("roster document 'players' and 'games' must be arrays")

        try:
            activities = [
                Activity(activity_id=str(raw["id"]), name=str(raw["name"]), category=str(raw.get("genre", "")))
                for raw in raw_games
            ]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed game entry: {exc}") from exc
        by_id = {a.activity_id: a for a in activities}
        if len(by_id) != len(activities):
            raise ValueError("roster document contains duplicate game ids")

        participants: list[Participant] = []
        for raw in raw_players:
            try:
                participant = Participant(
                    participant_id=str(raw["id"]),
                    tag=str(raw["tag"]),
                    first_name=str(raw.get("first_name", "")),
                    last_name=str(raw.get("last_name", "")),
                )
                for skill in raw.get("skills", []):
                    game_id = str(skill["game_id"])
                    if game_id not in by_id:
                        raise ValueError(f"player {participant.tag} references unknown game {game_id}")
                    participant.add_assessment(
                        RatingAssessment(
                            assessment_id=str(skill["id"]),
                            activity=by_id[game_id],
                            rating=int(skill["skill_level"]),
                        )
                    )
            except (KeyError, TypeError) as exc:
                raise ValueError(f"malformed player entry: {exc}") from exc
            participants.append(participant)
        if len({p.participant_id for p in participants}) != len(participants):
            raise ValueError("roster document contains duplicate player ids")
        return RosterDocument(participants=participants, activities=activities)

    def find_activity(self, key: str) -> Activity:
        for activity in self.activities:
            if key in (activity.activity_id, activity.name):
                return activity
        raise ValueError(f"unknown activity: {key}")

    def find_participants(self, keys: Iterable[str]) -> list[Participant]:
        """Resolve participants by id or tag, preserving the order of ``keys``."""
        found: list[Participant] = []
        for key in keys:
            match = next((p for p in self.participants if key in (p.participant_id, p.tag)), None)
            if match is None:
                raise ValueError(f"unknown participant: {key}")
            found.append(match)
        return found
