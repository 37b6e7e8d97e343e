from __future__ import annotations

from dataclasses import dataclass, field

from tbg.contracts import AssignmentError, CompletionError
from tbg.roster import Group, Participant


@dataclass(slots=True)
class AssignmentResult:
    groups: list[Group] = field(default_factory=list)
    error: AssignmentError | None = None
    swaps: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rating_spread(self) -> int:
        if not self.groups:
            return 0
        ratings = [g.group_rating() for g in self.groups]
        return max(ratings) - min(ratings)


@dataclass(slots=True)
class CompletionResult:
    selection: list[Participant] = field(default_factory=list)
    error: CompletionError | None = None
    total_rating: int = 0
    in_range: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None
