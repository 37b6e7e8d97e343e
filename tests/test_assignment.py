from __future__ import annotations

import pytest

from tbg.balancing import BalancedGroupAssigner
from tbg.contracts import AssignmentError, BalanceEventType, BalanceSettings
from tbg.core import EngineIntegrityError, EventBus, seeded_random
from tbg.roster import Group
from tests.helpers import CHESS, HOTS, ScriptedRandomSource, make_group, make_participant, make_pool, member_ids


def _assigner(seed: int = 1, **settings) -> BalancedGroupAssigner:
    return BalancedGroupAssigner(random_source=seeded_random(seed), settings=BalanceSettings(**settings))


def test_nine_players_form_three_balanced_full_groups():
    pool = make_pool([5, 9, 4, 7, 10, 4, 3, 6, 4])

    result = _assigner().assign(pool, 3, HOTS)

    assert result.ok
    assert len(result.groups) == 3
    assert all(g.is_full and g.target_size == 3 for g in result.groups)
    ratings = sorted(g.group_rating() for g in result.groups)
    assert sum(ratings) == 52
    assert ratings == [17, 17, 18]
    assert result.rating_spread <= 1
    assert result.swaps >= 1


def test_leftover_players_land_in_one_partial_group():
    pool = make_pool([8, 7, 6, 5, 4, 3, 2, 1])

    result = _assigner().assign(pool, 3, HOTS)

    assert result.ok
    sizes = sorted(g.current_size for g in result.groups)
    assert sizes == [2, 3, 3]
    assert all(g.reserve == () for g in result.groups)
    assert member_ids(result.groups) == sorted(p.participant_id for p in pool)


def test_partial_group_balances_without_filler():
    pool = make_pool([8, 7, 6, 5, 4, 3, 2, 1])

    result = _assigner(pad_overflow=False).assign(pool, 3, HOTS)

    assert result.ok
    assert sorted(g.current_size for g in result.groups) == [2, 3, 3]
    assert member_ids(result.groups) == sorted(p.participant_id for p in pool)


def test_duplicate_participant_is_rejected_before_anything_else():
    pool = make_pool([5, 9, 4, 7, 10, 4, 3, 6])
    pool.append(pool[0])

    result = _assigner().assign(pool, 3, HOTS)

    assert result.error == AssignmentError.DUPLICATE_PARTICIPANTS
    assert result.groups == []
    assert not result.ok


def test_too_few_players_for_two_full_groups():
    assert _assigner().assign(make_pool([1, 2, 3, 4, 5]), 3, HOTS).error == AssignmentError.SIZE_MISMATCH
    assert _assigner().assign(make_pool([1, 2, 3]), 0, HOTS).error == AssignmentError.SIZE_MISMATCH


def test_unrated_participant_is_rejected():
    pool = make_pool([5, 9, 4, 7, 10, 4])
    pool.append(make_participant("unrated", 0))
    pool.append(make_participant("chess", 4, activity=CHESS))

    result = _assigner().assign(pool, 3, HOTS)

    assert result.error == AssignmentError.INCOMPLETE_RATINGS


def test_input_pool_is_not_reordered():
    pool = make_pool([1, 9, 2, 8, 3, 7, 4, 6])
    before = list(pool)

    _assigner().assign(pool, 2, HOTS)

    assert pool == before


def test_conservation_and_capacity_across_seeds():
    ratings = [3, 8, 1, 10, 4, 4, 7, 2, 9, 5, 6, 6, 2, 8, 1, 3, 5, 7, 10, 4, 9, 2, 6]
    for seed in range(15):
        pool = make_pool(ratings)
        result = _assigner(seed).assign(pool, 4, HOTS)
        assert result.ok
        assert member_ids(result.groups) == sorted(p.participant_id for p in pool)
        assert all(g.current_size <= g.target_size for g in result.groups)
        assert sum(1 for g in result.groups if not g.is_full) == 1


def test_same_seed_gives_same_groups():
    ratings = [5, 9, 4, 7, 10, 4, 3, 6, 4, 4, 4, 5]

    def run(seed: int) -> list[list[str]]:
        result = _assigner(seed).assign(make_pool(ratings), 3, HOTS)
        return [[p.tag for p in g.members] for g in result.groups]

    assert run(11) == run(11)


def test_result_order_kept_when_shuffle_disabled():
    result = _assigner(shuffle_result=False).assign(make_pool([8, 7, 6, 5, 4, 3, 2]), 3, HOTS)
    assert [g.name for g in result.groups] == ["Team 1", "Team 2", "Team 3"]


def test_snake_assignment_alternates_direction():
    assigner = BalancedGroupAssigner(random_source=ScriptedRandomSource([0.0]))
    ordered = make_pool([9, 8, 7, 6, 5, 4, 3, 2])

    full_groups, overflow = assigner.snake_assign(ordered, 3, HOTS)

    assert [[p.rating_for(HOTS) for p in g.primary] for g in full_groups] == [[9, 4, 3], [8, 5, 2]]
    assert [p.rating_for(HOTS) for p in overflow.primary] == [7, 6]


def test_ordering_is_descending_by_rating():
    assigner = BalancedGroupAssigner(random_source=seeded_random(3))
    ordered = assigner.order_by_rating(make_pool([2, 9, 4, 4, 7, 1]), HOTS)
    assert [p.rating_for(HOTS) for p in ordered] == [9, 7, 4, 4, 2, 1]


def test_single_swap_equalises_two_groups():
    low = make_group([2, 2], target_size=2, prefix="L")
    high = make_group([4, 4], target_size=2, prefix="H")
    low_before = {p.participant_id for p in low.members}
    high_before = {p.participant_id for p in high.members}

    swapped = _assigner().try_swap(low, high)

    assert swapped
    assert low.group_rating() == 6
    assert high.group_rating() == 6
    assert len(low_before - {p.participant_id for p in low.members}) == 1
    assert len(high_before - {p.participant_id for p in high.members}) == 1


def test_swap_strictly_narrows_gap():
    a = make_group([10, 6, 1], target_size=3, prefix="A")
    b = make_group([5, 3, 2], target_size=3, prefix="B")
    gap_before = abs(a.group_rating() - b.group_rating())

    assert _assigner().try_swap(a, b)

    assert abs(a.group_rating() - b.group_rating()) < gap_before
    assert a.current_size == 3 and b.current_size == 3


def test_swap_declines_when_nothing_helps():
    close_a = make_group([3, 4], target_size=2, prefix="A")
    close_b = make_group([3, 3], target_size=2, prefix="B")
    assert not _assigner().try_swap(close_a, close_b)

    high = make_group([1, 9], target_size=2, prefix="H")
    low = make_group([1, 6], target_size=2, prefix="L")
    assert not _assigner().try_swap(high, low)
    assert high.group_rating() == 10 and low.group_rating() == 7


def test_swap_on_empty_group_fails_loudly():
    empty = Group.create("Empty", 2, HOTS)
    full = make_group([4, 4], target_size=2)

    with pytest.raises(EngineIntegrityError) as ex:
        _assigner().try_swap(empty, full)
    assert ex.value.artifact.error_code == "SWAP_EMPTY_GROUP"


def test_swap_across_activities_fails_loudly():
    hots = make_group([4, 4], target_size=2, prefix="H")
    chess = make_group([1, 1], target_size=2, activity=CHESS, prefix="C")

    with pytest.raises(EngineIntegrityError) as ex:
        _assigner().try_swap(hots, chess)
    assert ex.value.artifact.error_code == "SWAP_ACTIVITY_MISMATCH"


def test_events_published_for_assignment_and_swaps():
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append)
    assigner = BalancedGroupAssigner(random_source=seeded_random(2), event_bus=bus)

    result = assigner.assign(make_pool([5, 9, 4, 7, 10, 4, 3, 6, 4]), 3, HOTS)

    assert bus.emitted_count("assignment") == result.swaps + 1
    assert seen[-1].event_type == BalanceEventType.GROUPS_ASSIGNED
    assert all(e.event_type == BalanceEventType.SWAP_COMMITTED for e in seen[:-1])


def test_invalid_settings_rejected():
    with pytest.raises(ValueError):
        BalancedGroupAssigner(settings=BalanceSettings(refinement_factor=0))


class CountingAssigner(BalancedGroupAssigner):
    """Reports a swap on every attempt without touching the groups."""

    def __init__(self, **settings) -> None:
        super().__init__(random_source=seeded_random(1), settings=BalanceSettings(**settings))
        self.attempts = 0

    def try_swap(self, group_a: Group, group_b: Group) -> bool:
        self.attempts += 1
        return True


class PrimaryWatchingAssigner(BalancedGroupAssigner):
    """Records the primary tags of both groups after every swap attempt."""

    def __init__(self, **settings) -> None:
        super().__init__(random_source=seeded_random(3), settings=BalanceSettings(**settings))
        self.seen_primary_tags: list[str] = []

    def try_swap(self, group_a: Group, group_b: Group) -> bool:
        swapped = super().try_swap(group_a, group_b)
        self.seen_primary_tags.extend(p.tag for g in (group_a, group_b) for p in g.primary)
        return swapped


@pytest.mark.parametrize("factor", [1, 2])
def test_refinement_attempts_are_capped(factor):
    groups = [
        make_group([1, 1], target_size=2, prefix="A"),
        make_group([3, 3], target_size=2, prefix="B"),
        make_group([6, 6], target_size=2, prefix="C"),
    ]
    assigner = CountingAssigner(refinement_factor=factor)

    swaps = assigner.refine(groups)

    cap = len(groups) ** 2 * 2 * factor
    assert assigner.attempts == cap
    assert swaps == cap


def test_refinement_stops_once_no_pair_has_a_gap():
    groups = [make_group([4, 2], target_size=2, prefix="A"), make_group([3, 3], target_size=2, prefix="B")]
    assigner = CountingAssigner()

    assert assigner.refine(groups) == 0
    assert assigner.attempts == 0


def test_overflow_group_members_are_swapped_during_refinement():
    # the snake deal leaves both 10s in the two-member overflow group: 10+10 against 10+1+1
    pool = make_pool([10, 10, 10, 10, 1, 1, 1, 1])
    bus = EventBus()
    swapped_ids: list[str] = []

    def record_swap(event) -> None:
        if event.event_type == BalanceEventType.SWAP_COMMITTED:
            swapped_ids.extend(event.subjects)

    bus.subscribe(record_swap)
    assigner = PrimaryWatchingAssigner(shuffle_result=False)
    assigner.event_bus = bus

    result = assigner.assign(pool, 3, HOTS)

    assert result.ok
    assert result.swaps == 1
    overflow = result.groups[-1]
    assert overflow.current_size == 2
    assert sorted(p.rating_for(HOTS) for p in overflow.primary) == [1, 10]
    assert any(p.participant_id in swapped_ids for p in overflow.primary)
    assert sorted(g.group_rating() for g in result.groups) == [11, 12, 21]
    assert assigner.seen_primary_tags
    assert not any(tag.startswith("filler") for tag in assigner.seen_primary_tags)
    returned_tags = [p.tag for g in result.groups for p in (*g.primary, *g.reserve)]
    assert not any(tag.startswith("filler") for tag in returned_tags)
    assert member_ids(result.groups) == sorted(p.participant_id for p in pool)
