"""
Curbside command line.

    curbside run --difficulty hard --persona timid --seed 7
    curbside check-tuning tuning.yaml
"""

import argparse
import logging
import random
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import TuningError
from ..simulation import PERSONAS, AutopilotPlayer, Session, run_session
from ..state.results import SessionResults, format_time
from ..state.tuning import DIFFICULTIES, SIGN_MATERIALS, check_tuning, get_difficulty
from .config import load_tuning

console = Console()
logger = logging.getLogger(__name__)

THEME = {
    "primary": "steel_blue",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "good": "green",
    "dim": "dim",
}


def show_results(results: SessionResults) -> None:
    snap = results.snapshot
    table = Table(title="Session Results")
    table.add_column("Stat", style=THEME["dim"])
    table.add_column("Value")

    table.add_row("Grade", f"[bold {results.grade_color}]{results.grade}[/bold {results.grade_color}]")
    table.add_row("Score", str(snap.score))
    table.add_row("Ended by", snap.end_reason.value if snap.end_reason else "-")
    table.add_row("Time survived", format_time(results.time_survived))
    table.add_row("Confidence", f"{snap.confidence:.0f}%")
    table.add_row("Arm fatigue", f"{snap.arm_fatigue:.0f}%")
    table.add_row("Sign damage", f"{snap.sign_degradation:.0%}")
    table.add_row("Group size", str(snap.group_size))
    table.add_row("Events", ", ".join(k.value for k in snap.events_triggered) or "none")
    console.print(table)


def cmd_run(args: argparse.Namespace) -> int:
    try:
        tuning = load_tuning(args.tuning, strict=args.tuning is not None)
    except TuningError as e:
        console.print(f"[{THEME['danger']}]{e}[/{THEME['danger']}]")
        return 1

    rng = random.Random(args.seed)
    session = Session(
        duration=args.duration,
        difficulty=args.difficulty,
        material=args.material,
        tuning=tuning,
        rng=rng,
    )
    player = AutopilotPlayer(args.persona, rng=random.Random(args.seed))

    console.print(
        f"[{THEME['primary']}]{session.difficulty.label}[/{THEME['primary']}] "
        f"[{THEME['dim']}]{session.difficulty.vibe}[/{THEME['dim']}]"
    )
    transcript = run_session(session, player, step=args.step)
    session.teardown()

    show_results(transcript.results)

    if args.transcript:
        path = transcript.save(Path(args.transcript))
        console.print(f"[{THEME['dim']}]Transcript saved to {path}[/{THEME['dim']}]")
    return 0


def cmd_check_tuning(args: argparse.Namespace) -> int:
    try:
        tuning = load_tuning(args.file, strict=True)
    except TuningError as e:
        console.print(f"[{THEME['danger']}]{e}[/{THEME['danger']}]")
        return 1

    issues = check_tuning(tuning.events, get_difficulty(args.difficulty))
    if not issues:
        console.print(f"[{THEME['good']}]Tuning looks sane[/{THEME['good']}]")
        return 0
    for issue in issues:
        console.print(f"[{THEME['warning']}]![/{THEME['warning']}] {issue}")
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="curbside", description="Curbside session simulator")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Play one session headless with an autopilot")
    run.add_argument("--difficulty", choices=sorted(DIFFICULTIES), default="medium")
    run.add_argument("--material", choices=sorted(SIGN_MATERIALS), default="posterboard")
    run.add_argument("--duration", type=float, default=120.0, help="Session length in seconds")
    run.add_argument("--persona", choices=sorted(PERSONAS), default="savvy")
    run.add_argument("--seed", type=int, default=None, help="Seed for a replayable run")
    run.add_argument("--step", type=float, default=1 / 30, help="Seconds per simulated frame")
    run.add_argument("--tuning", default=None, help="YAML tuning file")
    run.add_argument("--transcript", default=None, help="Directory to save a markdown transcript")
    run.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    run.set_defaults(func=cmd_run)

    check = sub.add_parser("check-tuning", help="Report suspicious tuning values")
    check.add_argument("file", help="YAML tuning file")
    check.add_argument("--difficulty", choices=sorted(DIFFICULTIES), default="medium")
    check.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    check.set_defaults(func=cmd_check_tuning)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    return args.func(args)
