"""
Console driver for the guessing engine.

Usage:
    # Play interactively against a catalog file
    guess-engine play --catalog data/catalog.json

    # Self-play every catalog item as the target and print statistics
    guess-engine simulate --catalog data/catalog.json --seed 7 --output report.json

File paths default to GUESS_ENGINE_CATALOG / GUESS_ENGINE_CONFIG /
GUESS_ENGINE_SESSIONS (a .env file is honored).
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import GuessEngineError
from .models.config import EngineConfig, load_config
from .models.item import GateChoice
from .models.question import AnswerGrade
from .models.session import SessionPhase
from .models.turn import TurnResult
from .services.catalog_provider import InMemoryCatalogProvider, JsonCatalogProvider
from .services.session_repository import InMemorySessionRepository, JsonSessionRepository
from .settings import get_settings
from .simulation import run_simulation
from .stages.orchestrator import GuessEngine
from .utils.randomness import SeededRandomSource, SystemRandomSource

ANSWER_ALIASES = {
    "y": AnswerGrade.YES,
    "yes": AnswerGrade.YES,
    "py": AnswerGrade.PROBABLY_YES,
    "u": AnswerGrade.UNKNOWN,
    "?": AnswerGrade.UNKNOWN,
    "dc": AnswerGrade.DONT_CARE,
    "pn": AnswerGrade.PROBABLY_NO,
    "n": AnswerGrade.NO,
    "no": AnswerGrade.NO,
}

ANSWER_HELP = "y=yes py=probably yes u=don't know dc=don't care pn=probably no n=no | b N=back to question N | q=quit"


def _build_engine(args: argparse.Namespace, read_only: bool = False) -> GuessEngine:
    settings = get_settings()
    catalog_path = args.catalog or settings.catalog_path
    if catalog_path is None:
        raise SystemExit("No catalog given: pass --catalog or set GUESS_ENGINE_CATALOG")
    config_path = args.config or settings.config_path
    config = load_config(config_path) if config_path else EngineConfig()

    sessions_path = None if read_only else (getattr(args, "sessions", None) or settings.sessions_path)
    repository = (
        JsonSessionRepository(sessions_path) if sessions_path else InMemorySessionRepository()
    )
    seed = args.seed if args.seed is not None else settings.seed
    rng = SeededRandomSource(seed) if seed is not None else SystemRandomSource()
    catalog = JsonCatalogProvider(catalog_path, config.derived_confidence_threshold)
    if read_only:
        # Simulated successes must not write play bonuses back to the file.
        catalog = InMemoryCatalogProvider(
            [item.model_copy(deep=True) for item in catalog.list_items()],
            tags=catalog.list_tags(),
            summary_groups=catalog.list_summary_groups(),
            derived_confidence_threshold=config.derived_confidence_threshold,
        )
    return GuessEngine(catalog, repository, config=config, rng=rng)


def _print_fail_list(turn: TurnResult) -> None:
    print("\nI give up. Were you thinking of one of these?")
    for rank, candidate in enumerate(turn.fail_list, 1):
        print(f"  {rank}. {candidate.title or candidate.item_id}  ({candidate.probability:.1%})")


def _prompt(text: str) -> str:
    try:
        return input(text).strip().lower()
    except EOFError:
        return "q"


def cmd_play(args: argparse.Namespace) -> int:
    engine = _build_engine(args)
    turn = engine.start_session(GateChoice(args.gate))
    print(ANSWER_HELP)
    while True:
        if turn.phase == SessionPhase.SUCCESS:
            print("\nGot it!")
            return 0
        if turn.phase == SessionPhase.FAIL_LIST:
            _print_fail_list(turn)
            return 0
        if turn.phase == SessionPhase.REVEAL:
            item = turn.reveal_item
            label = f"{item.title} / {item.author}" if item else turn.reveal.item_id
            reply = _prompt(f"\nIs it: {label}? [y/n] ")
            if reply == "q":
                return 0
            turn = engine.answer_reveal(turn.session_id, reply in ("y", "yes"))
            continue

        entry = turn.question
        reply = _prompt(f"\nQ{entry.q_index}. {entry.display_text} ")
        if reply == "q":
            return 0
        if reply.startswith("b"):
            try:
                target = int(reply[1:].strip())
            except ValueError:
                print(ANSWER_HELP)
                continue
            try:
                result = engine.rollback_to_question(turn.session_id, target)
            except GuessEngineError as exc:
                print(f"Cannot go back: {exc}")
                continue
            turn = result.turn
            continue
        grade = ANSWER_ALIASES.get(reply)
        if grade is None:
            print(ANSWER_HELP)
            continue
        turn = engine.answer(turn.session_id, grade)


def cmd_simulate(args: argparse.Namespace) -> int:
    engine = _build_engine(args, read_only=True)
    targets = engine.catalog.list_candidates(GateChoice(args.gate))
    if args.limit:
        targets = targets[: args.limit]
    report = run_simulation(
        engine,
        targets,
        gate=GateChoice(args.gate),
        noise=args.noise,
        seed=args.seed,
    )
    summary = report.to_dict(include_outcomes=args.outcomes)
    print(f"Sessions:        {report.total_sessions}")
    print(f"Success rate:    {report.success_rate:.1%}")
    print(f"Avg questions:   {report.average_questions:.2f}")
    print(f"Avg confidence:  {report.average_confidence:.3f}")
    for label, count in report.confidence_distribution.items():
        print(f"  confidence {label:>8}: {count}")
    if args.output:
        with open(args.output, "w") as f:
            json.dump(summary, f, indent=2)
        print(f"Report written to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Adaptive guessing engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  guess-engine play --catalog data/catalog.json --gate EITHER
  guess-engine simulate --catalog data/catalog.json --noise 0.1 --seed 7
        """,
    )
    parser.add_argument("--catalog", type=Path, help="Catalog JSON file")
    parser.add_argument("--config", type=Path, help="Engine config JSON file")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument(
        "--gate",
        choices=[g.value for g in GateChoice],
        default=GateChoice.EITHER.value,
        help="Classification gate (default: EITHER)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play interactively")
    play.add_argument("--sessions", type=Path, help="Session store JSON file")
    play.set_defaults(func=cmd_play)

    simulate = sub.add_parser("simulate", help="Self-play each item as the target")
    simulate.add_argument("--noise", type=float, default=0.0, help="Chance of a random answer (0-1)")
    simulate.add_argument("--limit", type=int, default=0, help="Only the first N targets")
    simulate.add_argument("--output", "-o", type=Path, help="Write JSON report here")
    simulate.add_argument("--outcomes", action="store_true", help="Include per-session outcomes in the report")
    simulate.set_defaults(func=cmd_simulate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
