from __future__ import annotations

from typing import Sequence

from tbg.contracts import BalanceEventType, CompletionError, RandomSource
from tbg.core.containers import random_index
from tbg.core.events import EventBus, publish_event
from tbg.core.logging import get_logger
from tbg.core.randomness import default_random
from tbg.roster import Activity, Group, Participant

from .models import CompletionResult

logger = get_logger(__name__)

ENGINE_SCOPE = "completion"


class GroupCompletionSelector:
    """Picks the participants that fill a group's open slots within a rating range.

    A random selection is drawn first; if the resulting group rating misses
    ``[min_total, max_total]`` every remaining candidate is tried once as a
    replacement for a selected one. The first replacement that lands in range
    is taken. Otherwise the replacement moving the total closest to the centre
    of the range is kept and the search continues from there. When no
    replacement ever reaches the range the closest selection is returned.

    Neither the group nor the candidate sequence is modified.
    """

    def __init__(self, random_source: RandomSource | None = None, event_bus: EventBus | None = None) -> None:
        self.random_source = random_source if random_source is not None else default_random()
        self.event_bus = event_bus

    def complete(
        self,
        candidates: Sequence[Participant],
        group: Group,
        min_total: int,
        max_total: int,
    ) -> CompletionResult:
        error = self.validate_input(candidates, group, min_total, max_total)
        if error is not None:
            logger.debug(
                "completion_rejected",
                error=error.value,
                group=group.name,
                candidates=len(candidates),
                min_total=min_total,
                max_total=max_total,
            )
            return CompletionResult(error=error)

        activity = group.activity
        missing = group.target_size - group.current_size
        selection, alternates = self.random_split(candidates, missing)
        total = group.group_rating() + _rating_sum(selection, activity)
        if not min_total <= total <= max_total:
            total = self.improve(selection, alternates, total, activity, min_total, max_total)

        in_range = min_total <= total <= max_total
        publish_event(
            self.event_bus,
            ENGINE_SCOPE,
            BalanceEventType.COMPLETION_SELECTED,
            subjects=[p.participant_id for p in selection],
            claims=[f"{group.name}={total}"],
            data={"min_total": min_total, "max_total": max_total, "in_range": in_range},
        )
        logger.debug("completion_selected", group=group.name, total=total, in_range=in_range)
        return CompletionResult(selection=selection, total_rating=total, in_range=in_range)

    def validate_input(
        self,
        candidates: Sequence[Participant],
        group: Group,
        min_total: int,
        max_total: int,
    ) -> CompletionError | None:
        if min_total < 0 or max_total < 0:
            return CompletionError.NEGATIVE_RANGE
        if min_total > max_total:
            return CompletionError.INVERTED_RANGE
        if group.is_full:
            return CompletionError.ALREADY_FULL
        if len({p.participant_id for p in candidates}) != len(candidates):
            return CompletionError.DUPLICATE_PARTICIPANTS
        if any(group.is_member(p) for p in candidates):
            return CompletionError.CANDIDATE_ALREADY_MEMBER
        # more candidates than open slots, so there is something to swap in
        if len(candidates) <= group.target_size - group.current_size:
            return CompletionError.INSUFFICIENT_CANDIDATES
        if any(not p.is_rated_for(group.activity) for p in candidates):
            return CompletionError.INCOMPLETE_RATINGS
        return None

    def random_split(
        self,
        candidates: Sequence[Participant],
        count: int,
    ) -> tuple[list[Participant], list[Participant]]:
        pool = list(candidates)
        selection = [pool.pop(random_index(self.random_source, len(pool))) for _ in range(count)]
        return selection, pool

    def improve(
        self,
        selection: list[Participant],
        alternates: Sequence[Participant],
        total: int,
        activity: Activity,
        min_total: int,
        max_total: int,
    ) -> int:
        """Greedily replace selected participants with alternates; returns the new total."""
        optimum = min_total + (max_total - min_total) / 2
        for alternate in alternates:
            alternate_rating = alternate.rating_for(activity)
            best_index: int | None = None
            best_distance = abs(total - optimum)
            for index, member in enumerate(selection):
                candidate_total = total - member.rating_for(activity) + alternate_rating
                if min_total <= candidate_total <= max_total:
                    selection[index] = alternate
                    return candidate_total
                distance = abs(candidate_total - optimum)
                if distance < best_distance:
                    best_index = index
                    best_distance = distance
            if best_index is not None:
                total += alternate_rating - selection[best_index].rating_for(activity)
                selection[best_index] = alternate
        return total


def _rating_sum(participants: Sequence[Participant], activity: Activity) -> int:
    return sum(p.rating_for(activity) for p in participants)
