from __future__ import annotations

from itertools import combinations
from typing import Sequence

from tbg.contracts import AssignmentError, BalanceEventType, BalanceSettings, RandomSource
from tbg.core.containers import group_by, iter_descending_by_key, random_index, shuffle_in_place
from tbg.core.errors import integrity_error
from tbg.core.events import EventBus, publish_event
from tbg.core.logging import get_logger
from tbg.core.randomness import default_random
from tbg.core.settings import default_balance_settings
from tbg.roster import Activity, Group, Participant

from .models import AssignmentResult

logger = get_logger(__name__)

ENGINE_SCOPE = "assignment"


class BalancedGroupAssigner:
    """Builds randomly assembled but rating-balanced groups from a participant pool.

    The pool is ordered by rating (ties shuffled), dealt out to the groups in
    snake order and then refined by swapping single primary members between
    pairs of groups while that narrows their rating gap. Leftover participants
    (``len(pool) % target_size``) end up in one extra, partially filled group
    that takes part in balancing as well.

    Example with ratings ``[5, 9, 4, 7, 10, 4, 3, 6, 4]`` and groups of three::

        ordered   10 9 7 6 5 4 4 4 3
        pass 1    A=10  B=9  C=7
        pass 2    C=6   B=5  A=4
        pass 3    A=4   B=4  C=3      -> 18 / 18 / 16
        refine    swap a 4 of A with the 3 of C -> 17 / 18 / 17
    """

    def __init__(
        self,
        random_source: RandomSource | None = None,
        settings: BalanceSettings | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.random_source = random_source if random_source is not None else default_random()
        self.settings = settings if settings is not None else default_balance_settings()
        self.settings.validate()
        self.event_bus = event_bus

    def assign(self, participants: Sequence[Participant], target_size: int, activity: Activity) -> AssignmentResult:
        error = self.validate_input(participants, target_size, activity)
        if error is not None:
            logger.debug(
                "assignment_rejected",
                error=error.value,
                participants=len(participants),
                target_size=target_size,
                activity=activity.name,
            )
            return AssignmentResult(error=error)

        ordered = self.order_by_rating(participants, activity)
        full_groups, overflow = self.snake_assign(ordered, target_size, activity)

        balanced = list(full_groups)
        if overflow.primary:
            if self.settings.pad_overflow:
                self._pad_with_filler(overflow, ordered)
            balanced.append(overflow)
        swaps = self.refine(balanced)
        overflow.clear_reserve()

        groups = list(full_groups)
        if overflow.primary:
            groups.append(overflow)
        if self.settings.shuffle_result:
            shuffle_in_place(groups, self.random_source)

        result = AssignmentResult(groups=groups, swaps=swaps)
        publish_event(
            self.event_bus,
            ENGINE_SCOPE,
            BalanceEventType.GROUPS_ASSIGNED,
            subjects=[g.group_id for g in groups],
            claims=[f"{g.name}={g.group_rating()}" for g in groups],
            data={"activity": activity.name, "swaps": swaps, "rating_spread": result.rating_spread},
        )
        logger.debug(
            "groups_assigned",
            activity=activity.name,
            groups=len(groups),
            swaps=swaps,
            rating_spread=result.rating_spread,
        )
        return result

    def validate_input(
        self,
        participants: Sequence[Participant],
        target_size: int,
        activity: Activity,
    ) -> AssignmentError | None:
        if len({p.participant_id for p in participants}) != len(participants):
            return AssignmentError.DUPLICATE_PARTICIPANTS
        # at least two full groups must be formable
        if target_size < 1 or len(participants) < 2 * target_size:
            return AssignmentError.SIZE_MISMATCH
        if any(not p.is_rated_for(activity) for p in participants):
            return AssignmentError.INCOMPLETE_RATINGS
        return None

    def order_by_rating(self, participants: Sequence[Participant], activity: Activity) -> list[Participant]:
        buckets = group_by(participants, lambda p: p.rating_for(activity))
        ordered: list[Participant] = []
        for _, bucket in iter_descending_by_key(buckets):
            shuffle_in_place(bucket, self.random_source)
            ordered.extend(bucket)
        return ordered

    def snake_assign(
        self,
        ordered: Sequence[Participant],
        target_size: int,
        activity: Activity,
    ) -> tuple[list[Group], Group]:
        full_count, remainder = divmod(len(ordered), target_size)
        full_groups = [Group.create(f"Team {i}", target_size, activity) for i in range(1, full_count + 1)]
        overflow = Group.create(f"Team {full_count + 1}", target_size, activity)

        lanes: list[tuple[Group, int]] = [(g, target_size) for g in full_groups]
        if remainder:
            lanes.append((overflow, remainder))

        position = 0
        forward = True
        while position < len(ordered):
            sweep = lanes if forward else list(reversed(lanes))
            for group, quota in sweep:
                if position >= len(ordered):
                    break
                if group.current_size >= quota:
                    continue
                self._insert_primary(group, ordered[position])
                position += 1
            forward = not forward
        return full_groups, overflow

    def refine(self, groups: list[Group]) -> int:
        """Swap member pairs until no pair of groups can be narrowed further.

        Returns the number of committed swaps. The number of swap attempts is
        capped at ``len(groups)**2 * target_size * refinement_factor``.
        """
        if len(groups) < 2:
            return 0
        target_size = max(g.target_size for g in groups)
        attempts_left = len(groups) ** 2 * target_size * self.settings.refinement_factor
        swaps = 0
        improved = True
        while improved and attempts_left > 0:
            improved = False
            for group_a, group_b in self._pairs_by_gap(groups):
                if attempts_left <= 0:
                    break
                attempts_left -= 1
                if self.try_swap(group_a, group_b):
                    swaps += 1
                    improved = True
                    break
        return swaps

    def try_swap(self, group_a: Group, group_b: Group) -> bool:
        """Swap the one primary member pair that best narrows the gap between two groups.

        Only pairs whose rating gain lies strictly between 0 and the current
        gap qualify; among those the gain closest to half the gap wins and ties
        are broken at random. Returns False when no pair improves the balance.
        """
        self._check_swap_preconditions(group_a, group_b)
        activity = group_a.activity
        rating_a = group_a.group_rating()
        rating_b = group_b.group_rating()
        diff = abs(rating_a - rating_b)
        if diff <= 1:
            return False

        higher, lower = (group_a, group_b) if rating_a > rating_b else (group_b, group_a)
        ideal_shift = diff / 2
        best_distance = ideal_shift
        options: list[tuple[Participant, Participant]] = []
        for high in higher.primary:
            high_rating = high.rating_for(activity)
            for low in lower.primary:
                gain = high_rating - low.rating_for(activity)
                if gain <= 0 or gain >= diff:
                    continue
                distance = abs(ideal_shift - gain)
                if distance > best_distance:
                    continue
                if distance < best_distance:
                    best_distance = distance
                    options.clear()
                options.append((high, low))

        if not options:
            return False

        high, low = options[random_index(self.random_source, len(options))]
        higher.remove(high)
        lower.remove(low)
        self._insert_primary(higher, low)
        self._insert_primary(lower, high)

        gap_after = abs(higher.group_rating() - lower.group_rating())
        publish_event(
            self.event_bus,
            ENGINE_SCOPE,
            BalanceEventType.SWAP_COMMITTED,
            subjects=[high.participant_id, low.participant_id],
            claims=[f"{high.tag}->{lower.name}", f"{low.tag}->{higher.name}"],
            data={"gap_before": diff, "gap_after": gap_after},
        )
        logger.debug("swap_committed", high=high.tag, low=low.tag, gap_before=diff, gap_after=gap_after)
        return True

    def _pairs_by_gap(self, groups: list[Group]) -> list[tuple[Group, Group]]:
        # a gap of one rating point cannot be narrowed by any swap
        rated = [(abs(a.group_rating() - b.group_rating()), a, b) for a, b in combinations(groups, 2)]
        rated = [entry for entry in rated if entry[0] > 1]
        rated.sort(key=lambda entry: entry[0], reverse=True)
        return [(a, b) for _, a, b in rated]

    def _pad_with_filler(self, overflow: Group, ordered: Sequence[Participant]) -> None:
        activity = overflow.activity
        total = sum(p.rating_for(activity) for p in ordered)
        average = max(1, int(total / len(ordered) + 0.5))
        index = overflow.current_size
        while not overflow.is_full:
            filler = Participant.create(tag=f"{self.settings.filler_tag_prefix}{index}")
            filler.rate(activity, average)
            if not overflow.add_reserve(filler):
                raise integrity_error(
                    ENGINE_SCOPE,
                    "FILLER_REJECTED",
                    f"overflow group {overflow.name} rejected filler participant",
                    state_snapshot={"current_size": overflow.current_size, "target_size": overflow.target_size},
                    identifiers={"group_id": overflow.group_id},
                )
            index += 1

    def _insert_primary(self, group: Group, participant: Participant) -> None:
        if not group.add_primary(participant):
            raise integrity_error(
                ENGINE_SCOPE,
                "INSERT_REJECTED",
                f"group {group.name} rejected participant {participant.tag}",
                state_snapshot={
                    "current_size": group.current_size,
                    "target_size": group.target_size,
                    "is_member": group.is_member(participant),
                },
                identifiers={"group_id": group.group_id, "participant_id": participant.participant_id},
            )

    def _check_swap_preconditions(self, group_a: Group, group_b: Group) -> None:
        if group_a is group_b:
            raise integrity_error(
                ENGINE_SCOPE,
                "SWAP_SAME_GROUP",
                f"cannot swap members of group {group_a.name} with itself",
                identifiers={"group_id": group_a.group_id},
            )
        if group_a.activity != group_b.activity:
            raise integrity_error(
                ENGINE_SCOPE,
                "SWAP_ACTIVITY_MISMATCH",
                f"groups {group_a.name} and {group_b.name} are bound to different activities",
                identifiers={"group_a": group_a.group_id, "group_b": group_b.group_id},
            )
        for group in (group_a, group_b):
            if not group.primary:
                raise integrity_error(
                    ENGINE_SCOPE,
                    "SWAP_EMPTY_GROUP",
                    f"group {group.name} has no primary members to swap",
                    state_snapshot={"current_size": group.current_size},
                    identifiers={"group_id": group.group_id},
                )
