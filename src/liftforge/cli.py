#!/usr/bin/env python3
"""
LiftForge CLI.

Run the gamification handlers against a local database.

Usage:
    liftforge init-db
    liftforge award-xp --user u1 --sets s1 s2 s3
    liftforge level --user u1 --recalculate
    liftforge detect-prs --workout w1
    liftforge track-week --user u1 --workout w1 --timezone Europe/Madrid
    liftforge unlock-badges --user u1
    liftforge check-rust --user u1
    liftforge process-workout --user u1 --workout w1
"""

import argparse
import sys

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .db.database import GamificationDatabase
from .exceptions import LiftForgeError
from .services.badge_service import BadgeService
from .services.level_service import LevelService
from .services.pipeline import GamificationPipeline
from .services.pr_detection_service import PRDetectionService
from .services.rust_service import BadgeRustService
from .services.weekly_activity_service import WeeklyActivityService
from .services.xp_service import XpLedgerService

console = Console()


def _kwargs() -> dict:
    return {"default_timezone": get_settings().default_timezone}


def cmd_init_db(args, db: GamificationDatabase):
    """Create the schema and seed badge definitions."""
    inserted = db.seed_achievements()
    console.print()
    console.print(Panel("[bold]LiftForge - Database[/bold]"))
    console.print(f"Database: [cyan]{db.db_path}[/cyan]")
    console.print(f"Achievements seeded: [green]{inserted}[/green] new, {len(db.get_achievements())} total")
    console.print()


def cmd_award_xp(args, db: GamificationDatabase):
    result = XpLedgerService(db, **_kwargs()).award_xp(args.user, args.sets)
    console.print()
    if result.xp_awarded:
        console.print(f"[green]+{result.xp_awarded} XP[/green] (today: {result.today_total})")
    else:
        console.print(f"[yellow]No XP awarded[/yellow] (today: {result.today_total})")
    if result.level:
        console.print(f"Level {result.level.level}, {result.level.xp_to_next_level} XP to next")
    console.print()


def cmd_level(args, db: GamificationDatabase):
    """Show the user's level."""
    service = LevelService(db, **_kwargs())
    info = service.calculate_level(args.user) if args.recalculate else service.get_level(args.user)

    status_text = f"""
[cyan]Level:[/cyan]          {info.level}
[cyan]Total XP:[/cyan]       {info.total_xp}
[cyan]Next level at:[/cyan]  {info.xp_for_next_level} XP ({info.xp_to_next_level} to go)
[cyan]Progress:[/cyan]       {info.progress_percent:.1f}%
"""
    console.print()
    console.print(Panel(status_text, title=f"Level - {args.user}", box=box.ROUNDED))

    history = service.get_xp_history(args.user, limit=args.history)
    if history:
        table = Table(title="Recent XP", box=box.ROUNDED)
        table.add_column("When", style="cyan")
        table.add_column("Source")
        table.add_column("XP", justify="right", style="green")
        for entry in history:
            table.add_row(entry.created_at, f"{entry.source_type} {entry.source_id}", str(entry.xp_amount))
        console.print(table)
    console.print()


def cmd_detect_prs(args, db: GamificationDatabase):
    result = PRDetectionService(db, **_kwargs()).detect_prs(args.workout)
    console.print()
    if not result.prs:
        console.print("No personal records in this workout.")
        console.print()
        return

    table = Table(title=f"Personal Records - {args.workout}", box=box.ROUNDED)
    table.add_column("Exercise", style="cyan")
    table.add_column("Set")
    table.add_column("Est. 1RM", justify="right", style="green")
    table.add_column("Previous", justify="right")
    table.add_column("Gain", justify="right")
    for pr in result.prs:
        table.add_row(
            pr.exercise_id,
            pr.set_id,
            f"{pr.new_pr:.1f} kg",
            f"{pr.previous_pr:.1f} kg",
            f"+{pr.improvement:.1f} kg",
        )
    console.print(table)
    console.print()


def cmd_track_week(args, db: GamificationDatabase):
    result = WeeklyActivityService(db, **_kwargs()).track(args.user, args.workout, args.timezone)
    week = result.activity_week

    status_text = f"""
[cyan]Week of:[/cyan]       {week.week_start}
[cyan]Workouts:[/cyan]      {week.workouts_completed}
[cyan]Active days:[/cyan]   {week.active_days}
[cyan]Sets:[/cyan]          {week.total_sets}
[cyan]Volume:[/cyan]        {week.total_volume_kg:.1f} kg
"""
    console.print()
    console.print(Panel(status_text, title="Weekly Activity", box=box.ROUNDED))
    for streak_type, length in result.streaks.items():
        console.print(f"  {streak_type}: [green]{length}[/green] week(s)")
    if result.perfect_week_badges:
        console.print(f"[magenta]Perfect week: {', '.join(result.perfect_week_badges)}[/magenta]")
    console.print()


def cmd_unlock_badges(args, db: GamificationDatabase):
    result = BadgeService(db, **_kwargs()).unlock_badges(args.user)
    console.print()
    if not result.new_badges:
        console.print("No new badges.")
    for badge in result.new_badges:
        console.print(f"[green]Unlocked[/green] {badge.code}: {badge.title}")
    console.print()


def cmd_check_rust(args, db: GamificationDatabase):
    result = BadgeRustService(db, **_kwargs()).check_rust(args.user)
    console.print()
    console.print(f"Checked {result.checked_badges} badge(s)")
    for update in result.updates:
        state = "[red]rusty[/red]" if update.is_now_rusty else "[green]polished[/green]"
        console.print(f"  {update.badge_code}: {state} ({update.days_since_activity} days since activity)")
    console.print()


def cmd_process_workout(args, db: GamificationDatabase):
    summary = GamificationPipeline(db, **_kwargs()).process_workout(args.user, args.workout, args.timezone)

    table = Table(title=f"Workout {args.workout}", box=box.ROUNDED)
    table.add_column("Stage", style="cyan")
    table.add_column("Result", style="white")
    table.add_row("XP", f"+{summary.xp_awarded}")
    if summary.level:
        level_text = f"{summary.level.level}" + (" [green](level up!)[/green]" if summary.level_up else "")
        table.add_row("Level", level_text)
    table.add_row("PRs", str(len(summary.prs)))
    if summary.activity_week:
        table.add_row("Week", f"{summary.activity_week.week_start}: {summary.activity_week.workouts_completed} workout(s)")
    table.add_row("Streaks", ", ".join(f"{k}={v}" for k, v in summary.streaks.items()) or "-")
    table.add_row("New badges", ", ".join(b.code for b in summary.new_badges) or "-")
    table.add_row("Polished", ", ".join(summary.polished) or "-")

    console.print()
    console.print(table)
    for error in summary.errors:
        console.print(f"[red]{error.stage} failed:[/red] {error.message}")
    console.print()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="LiftForge - strength training gamification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  liftforge init-db
  liftforge award-xp --user u1 --sets s1 s2
  liftforge process-workout --user u1 --workout w1 --timezone America/New_York
        """,
    )
    parser.add_argument("--db", help="Database path (defaults to LIFTFORGE_DATABASE_PATH)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create tables and seed achievements")

    award_p = subparsers.add_parser("award-xp", help="Award XP for completed sets")
    award_p.add_argument("--user", required=True)
    award_p.add_argument("--sets", nargs="+", required=True, help="Set ids")

    level_p = subparsers.add_parser("level", help="Show a user's level")
    level_p.add_argument("--user", required=True)
    level_p.add_argument("--recalculate", action="store_true", help="Recompute from the XP ledger")
    level_p.add_argument("--history", type=int, default=10, help="Ledger entries to show")

    pr_p = subparsers.add_parser("detect-prs", help="Detect personal records in a workout")
    pr_p.add_argument("--workout", required=True)

    week_p = subparsers.add_parser("track-week", help="Fold a finished workout into its week")
    week_p.add_argument("--user", required=True)
    week_p.add_argument("--workout", required=True)
    week_p.add_argument("--timezone", help="IANA zone if the workout has none")

    badges_p = subparsers.add_parser("unlock-badges", help="Unlock earned badges")
    badges_p.add_argument("--user", required=True)

    rust_p = subparsers.add_parser("check-rust", help="Update badge rust")
    rust_p.add_argument("--user", required=True)

    process_p = subparsers.add_parser("process-workout", help="Run the full pipeline for a workout")
    process_p.add_argument("--user", required=True)
    process_p.add_argument("--workout", required=True)
    process_p.add_argument("--timezone", help="IANA zone if the workout has none")

    args = parser.parse_args()

    commands = {
        "init-db": cmd_init_db,
        "award-xp": cmd_award_xp,
        "level": cmd_level,
        "detect-prs": cmd_detect_prs,
        "track-week": cmd_track_week,
        "unlock-badges": cmd_unlock_badges,
        "check-rust": cmd_check_rust,
        "process-workout": cmd_process_workout,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    db = GamificationDatabase(args.db or get_settings().database_path)

    try:
        command(args, db)
    except LiftForgeError as e:
        console.print(f"[red]Error ({e.code.value}):[/red] {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
