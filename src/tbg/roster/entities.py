from __future__ import annotations

from dataclasses import dataclass, field

from tbg.core.ids import make_id


@dataclass(frozen=True, slots=True)
class Activity:
    activity_id: str
    name: str
    category: str = ""

    @classmethod
    def create(cls, name: str, category: str = "") -> Activity:
        return cls(activity_id=make_id("act"), name=name, category=category)


@dataclass(slots=True)
class RatingAssessment:
    assessment_id: str
    activity: Activity
    rating: int

    def __post_init__(self) -> None:
        if self.rating < 0:
            raise ValueError(f"rating must be non-negative, got {self.rating}")

    @classmethod
    def create(cls, activity: Activity, rating: int) -> RatingAssessment:
        return cls(assessment_id=make_id("rat"), activity=activity, rating=rating)

    @property
    def is_assessed(self) -> bool:
        return self.rating > 0


@dataclass(eq=False, slots=True)
class Participant:
    """A rated person. Equality is identity; collections key on ``participant_id``."""

    participant_id: str
    tag: str
    first_name: str = ""
    last_name: str = ""
    assessments: dict[str, RatingAssessment] = field(default_factory=dict)

    @classmethod
    def create(cls, tag: str, first_name: str = "", last_name: str = "") -> Participant:
        return cls(participant_id=make_id("ply"), tag=tag, first_name=first_name, last_name=last_name)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def add_assessment(self, assessment: RatingAssessment) -> None:
        # one assessment per activity, the latest wins
        self.assessments[assessment.activity.activity_id] = assessment

    def rate(self, activity: Activity, rating: int) -> RatingAssessment:
        assessment = RatingAssessment.create(activity, rating)
        self.add_assessment(assessment)
        return assessment

    def rating_for(self, activity: Activity) -> int:
        assessment = self.assessments.get(activity.activity_id)
        return assessment.rating if assessment is not None else 0

    def is_rated_for(self, activity: Activity) -> bool:
        return self.rating_for(activity) > 0


@dataclass(eq=False, slots=True)
class Group:
    """A team with a fixed capacity bound to one activity.

    ``primary`` and ``reserve`` are disjoint and together never exceed
    ``target_size``. Only participants rated above zero for ``activity`` may join.
    """

    group_id: str
    name: str
    target_size: int
    activity: Activity
    _primary: list[Participant] = field(default_factory=list, repr=False)
    _reserve: list[Participant] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.target_size < 1:
            raise ValueError(f"target_size must be positive, got {self.target_size}")

    @classmethod
    def create(cls, name: str, target_size: int, activity: Activity) -> Group:
        return cls(group_id=make_id("grp"), name=name, target_size=target_size, activity=activity)

    @property
    def primary(self) -> tuple[Participant, ...]:
        return tuple(self._primary)

    @property
    def reserve(self) -> tuple[Participant, ...]:
        return tuple(self._reserve)

    @property
    def members(self) -> tuple[Participant, ...]:
        return tuple(self._primary) + tuple(self._reserve)

    @property
    def current_size(self) -> int:
        return len(self._primary) + len(self._reserve)

    @property
    def is_full(self) -> bool:
        return self.current_size == self.target_size

    def is_member(self, participant: Participant) -> bool:
        pid = participant.participant_id
        return any(p.participant_id == pid for p in self._primary) or any(
            p.participant_id == pid for p in self._reserve
        )

    def can_accept(self, participant: Participant) -> bool:
        return (
            self.current_size < self.target_size
            and not self.is_member(participant)
            and participant.is_rated_for(self.activity)
        )

    def add_primary(self, participant: Participant) -> bool:
        if not self.can_accept(participant):
            return False
        self._primary.append(participant)
        return True

    def add_reserve(self, participant: Participant) -> bool:
        if not self.can_accept(participant):
            return False
        self._reserve.append(participant)
        return True

    def remove(self, participant: Participant) -> None:
        pid = participant.participant_id
        self._primary = [p for p in self._primary if p.participant_id != pid]
        self._reserve = [p for p in self._reserve if p.participant_id != pid]

    def clear_primary(self) -> None:
        self._primary.clear()

    def clear_reserve(self) -> None:
        self._reserve.clear()

    def group_rating(self) -> int:
        return sum(p.rating_for(self.activity) for p in self.members)


@dataclass(slots=True)
class Match:
    match_id: str
    group: Group
    opponent: Group | None = None

    @classmethod
    def create(cls, group: Group, opponent: Group | None = None) -> Match:
        return cls(match_id=make_id("mat"), group=group, opponent=opponent)

    @property
    def has_opponent(self) -> bool:
        return self.opponent is not None

    @property
    def rating_gap(self) -> int | None:
        if self.opponent is None:
            return None
        return abs(self.group.group_rating() - self.opponent.group_rating())
