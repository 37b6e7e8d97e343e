from __future__ import annotations

import argparse
from pathlib import Path

from tbg.balancing import BalancedGroupAssigner, GroupCompletionSelector, pair_matches
from tbg.core import (
    EngineIntegrityError,
    EventBus,
    default_random,
    load_balance_settings,
    persist_forensic_artifact,
    seeded_random,
)
from tbg.core.logging import configure_logging, get_logger
from tbg.persistence import BalanceHistoryStore, RosterDocument
from tbg.roster import Group

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 2


def _split_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _format_group(group: Group) -> str:
    members = ", ".join(f"{p.tag}({p.rating_for(group.activity)})" for p in group.members)
    return f"- {group.name} [{group.current_size}/{group.target_size}] rating={group.group_rating()}: {members}"


def _run_balance(args: argparse.Namespace) -> int:
    roster = RosterDocument.load(args.roster)
    activity = roster.find_activity(args.activity)
    settings = load_balance_settings(args.settings) if args.settings else None
    random_source = seeded_random(args.seed) if args.seed is not None else default_random()
    bus = EventBus()

    assigner = BalancedGroupAssigner(random_source=random_source, settings=settings, event_bus=bus)
    result = assigner.assign(roster.participants, args.size, activity)
    if not result.ok:
        print(f"Balancing rejected: {result.error.value}")
        return EXIT_REJECTED

    print(f"Groups for {activity.name} (spread={result.rating_spread}, swaps={result.swaps}):")
    for group in result.groups:
        print(_format_group(group))
    print("Matches:")
    for match in pair_matches(result.groups):
        if match.opponent is None:
            print(f"- {match.group.name} has no opponent")
        else:
            print(f"- {match.group.name} vs {match.opponent.name} (gap={match.rating_gap})")

    if args.history:
        run_id = BalanceHistoryStore(args.history).record_assignment(activity, result.groups, seed=args.seed)
        print(f"Recorded run {run_id}")
    if args.chart:
        print(f"Chart written to {_render_chart(result.groups, args.chart)}")
    logger.debug("balance_command_finished", events=bus.emitted_count())
    return EXIT_OK


def _render_chart(groups: list[Group], output_path: Path) -> Path:
    from tbg.reporting import render_group_ratings

    return render_group_ratings(groups, output_path)


def _run_complete(args: argparse.Namespace) -> int:
    roster = RosterDocument.load(args.roster)
    activity = roster.find_activity(args.activity)
    members = roster.find_participants(_split_ids(args.members))
    group = Group.create(args.name, args.size, activity)
    for member in members:
        if not group.add_primary(member):
            print(f"Cannot add {member.tag} to {group.name}")
            return EXIT_REJECTED

    candidate_keys = _split_ids(args.candidates)
    if candidate_keys:
        candidates = roster.find_participants(candidate_keys)
    else:
        candidates = [p for p in roster.participants if not group.is_member(p)]

    random_source = seeded_random(args.seed) if args.seed is not None else default_random()
    result = GroupCompletionSelector(random_source=random_source).complete(
        candidates, group, args.min_total, args.max_total
    )
    if not result.ok:
        print(f"Completion rejected: {result.error.value}")
        return EXIT_REJECTED

    status = "within range" if result.in_range else "closest achievable"
    print(f"Selected for {group.name} (total={result.total_rating}, {status}):")
    for participant in result.selection:
        print(f"- {participant.tag} ({participant.rating_for(activity)})")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tbg", description="Balanced team generator")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--log-json", action="store_true", help="emit logs as JSON lines")
    parser.add_argument("--forensics-dir", type=Path, default=None, help="write integrity failure artifacts here")
    sub = parser.add_subparsers(dest="command", required=True)

    balance = sub.add_parser("balance", help="split a roster into balanced teams")
    balance.add_argument("roster", type=Path, help="roster JSON document")
    balance.add_argument("--activity", required=True, help="activity name or id to balance for")
    balance.add_argument("--size", type=int, required=True, help="target team size")
    balance.add_argument("--seed", type=int, default=None, help="seed for deterministic runs")
    balance.add_argument("--settings", type=Path, default=None, help="balance settings JSON file")
    balance.add_argument("--history", type=Path, default=None, help="duckdb file to record the run in")
    balance.add_argument("--chart", type=Path, default=None, help="write a rating chart PNG")
    balance.set_defaults(handler=_run_balance)

    complete = sub.add_parser("complete", help="fill the open slots of a team within a rating range")
    complete.add_argument("roster", type=Path, help="roster JSON document")
    complete.add_argument("--activity", required=True, help="activity name or id")
    complete.add_argument("--size", type=int, required=True, help="target team size")
    complete.add_argument("--members", default="", help="comma separated ids or tags already on the team")
    complete.add_argument("--candidates", default=None, help="comma separated ids or tags to pick from")
    complete.add_argument("--min", dest="min_total", type=int, required=True, help="minimum team rating")
    complete.add_argument("--max", dest="max_total", type=int, required=True, help="maximum team rating")
    complete.add_argument("--name", default="Team", help="team name")
    complete.add_argument("--seed", type=int, default=None, help="seed for deterministic runs")
    complete.set_defaults(handler=_run_complete)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, log_json=args.log_json)

    try:
        return args.handler(args)
    except ValueError as exc:
        parser.exit(EXIT_REJECTED, f"error: {exc}\n")
    except EngineIntegrityError as exc:
        if args.forensics_dir is not None:
            path = persist_forensic_artifact(exc.artifact, args.forensics_dir)
            logger.error("integrity_failure", code=exc.artifact.error_code, artifact=str(path))
        raise


if __name__ == "__main__":
    raise SystemExit(main())
