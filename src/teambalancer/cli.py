"""Command-line interface for balancing a roster CSV into teams."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from teambalancer.balancer import balance_roster
from teambalancer.config import get_settings
from teambalancer.config_loader import MappingProfile
from teambalancer.errors import BalanceError
from teambalancer.export import export_teams_to_csv, export_teams_to_json
from teambalancer.ingest import load_roster_csv, normalize_request


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Split a roster CSV into balanced teams")
    parser.add_argument("roster", type=Path, help="Path to roster CSV (name,overall,position)")
    parser.add_argument("--teams", type=int, default=settings.default_num_teams, help="Number of teams to build")
    parser.add_argument(
        "--time-limit",
        type=float,
        default=settings.default_time_limit,
        help="Search budget in seconds",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        default=settings.default_num_attempts,
        help="Maximum number of randomized restarts",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible teams")
    parser.add_argument(
        "--parallel-jobs",
        type=int,
        default=None,
        help="Worker processes used for attempts (default from TEAMBALANCER_PARALLEL_JOBS)",
    )
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for roster CSV columns (e.g., overall=Rating)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load column mapping JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save column mapping JSON", default=None)
    parser.add_argument("--output", type=Path, default=None, help="Write team assignments CSV")
    parser.add_argument("--json", type=Path, default=None, help="Write the API response JSON")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        roster_mapping = _parse_mapping(args.column)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2
    if args.load_profile:
        profile = MappingProfile.load(args.load_profile)
        roster_mapping = profile.roster_mapping | roster_mapping
    if args.save_profile:
        MappingProfile(roster_mapping).save(args.save_profile)
        print(f"Saved mapping profile to {args.save_profile}")

    try:
        rows = load_roster_csv(args.roster, mapping=roster_mapping or None)
        request = normalize_request(
            rows,
            num_teams=args.teams,
            time_limit=args.time_limit,
            num_attempts=args.attempts,
            seed=args.seed,
        )
        result = balance_roster(request, parallel_jobs=args.parallel_jobs)
    except BalanceError as exc:
        print(f"{exc.code}: {exc.message}", file=sys.stderr)
        return 1

    for team in result.teams:
        dist = team.position_distribution
        print(
            f"Team {team.team_number}: avg {team.average_rating:.2f}, total {team.total_rating:.1f} "
            f"(DEF {dist['DEF']}, MID {dist['MID']}, ATT {dist['ATT']})"
        )
        print("  " + ", ".join(f"{player.name} ({player.position} {player.overall:g})" for player in team.players))
    print(
        f"Overall mean {result.overall_mean:.2f}, max rating difference {result.max_rating_difference:.3f} "
        f"(best of {result.attempts_completed} attempts, {result.elapsed:.2f}s)"
    )

    if args.output:
        args.output.write_text(export_teams_to_csv(result), encoding="utf-8")
        print(f"Wrote team assignments to {args.output}")
    if args.json:
        args.json.write_text(export_teams_to_json(result), encoding="utf-8")
        print(f"Wrote response JSON to {args.json}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
