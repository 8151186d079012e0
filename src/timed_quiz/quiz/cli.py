"""Command-line entry points for playing and inspecting quizzes."""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timed_quiz.core import config_templates
from timed_quiz.core import workspace as workspace_mod
from timed_quiz.core.config_templates import ConfigTemplateError
from timed_quiz.core.logging import configure_logger
from timed_quiz.core.workspace import WorkspaceError

from .builder import build_session_queue
from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    QuizConfigError,
    load_config,
)
from .machine import SessionListener
from .records import ParseResult, QuestionRecord, parse_bank
from .runner import QuizRunner, file_text_source
from .view import QuizApp

LOGGER_NAME = "timed_quiz"


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--bank",
        type=Path,
        help="Question bank file (defaults to the configured bank path).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file (defaults to the workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to TIMED_QUIZ_HOME).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed sampling and shuffling for a reproducible session.",
    )
    parser.add_argument(
        "--quota",
        type=int,
        help="Maximum number of questions drawn per subtopic.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log records to stderr.",
    )


def _build_play_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timed-quiz play",
        description="Run the timed multiple-choice quiz in the terminal.",
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--time",
        dest="time_per_question",
        type=float,
        help="Seconds allowed for each question.",
    )
    return parser


def _build_inspect_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timed-quiz inspect",
        description=(
            "Parse a question bank, report rejected lines and preview a "
            "sampled session queue."
        ),
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--show-rejected",
        action="store_true",
        help="List every rejected line with its reason.",
    )
    return parser


def _load(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> LoadResult:
    overrides = ConfigOverrides(
        bank_path=args.bank,
        seed=args.seed,
        quota=args.quota,
        time_per_question=getattr(args, "time_per_question", None),
        log_level=args.log_level,
    )
    try:
        return load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))


def _rng_for(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def main_play(argv: Sequence[str] | None = None) -> int:
    parser = _build_play_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    load_result = _load(parser, args)
    config = load_result.config

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.info(
        "Launching quiz",
        extra={"bank_path": config.bank_path, "seed": config.seed},
    )
    if not config.bank_path.exists():
        sys.stderr.write(
            f"Question bank not found at {config.bank_path}; "
            "the quiz will finish immediately.\n"
        )

    def _runner(listener: SessionListener) -> QuizRunner:
        return QuizRunner(
            file_text_source(config.bank_path),
            listener,
            settings=config.settings,
            rng=_rng_for(config.seed),
            reload_on_restart=config.reload_on_restart,
        )

    QuizApp(_runner, tick_interval=config.tick_interval).run()
    sys.stdout.write(f"Log file: {log_path}\n")
    return 0


def main_inspect(
    argv: Sequence[str] | None = None, *, console: Optional[Console] = None
) -> int:
    parser = _build_inspect_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    load_result = _load(parser, args)
    config = load_result.config
    out = console or Console()

    configure_logger(
        LOGGER_NAME,
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )

    text = file_text_source(config.bank_path)()
    if text is None:
        out.print(
            Panel(
                Text(f"Question bank not found: {config.bank_path}"),
                title="Inspect",
                border_style="red",
            )
        )
        return 1

    result = parse_bank(text)
    _render_bank(out, result, config.bank_path)
    if args.show_rejected and result.rejected:
        _render_rejected(out, result)

    queue = build_session_queue(
        result.records,
        quota=config.settings.quota,
        rng=_rng_for(config.seed),
    )
    _render_queue(out, queue)
    return 0 if result.records else 1


def _render_bank(console: Console, result: ParseResult, path: Path) -> None:
    console.rule(f"Question bank: {escape(path.name)}")
    overview = Table(show_header=False, box=box.SIMPLE, expand=False)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Questions", str(len(result.records)))
    overview.add_row("Rejected lines", str(result.rejected_count))
    overview.add_row("Subtopics", str(len(result.subtopics())))
    console.print(overview)

    if result.records:
        per_topic = Table(title="Per subtopic", box=box.SIMPLE)
        per_topic.add_column("Subtopic")
        per_topic.add_column("Questions", justify="right")
        for subtopic, count in result.subtopics().items():
            per_topic.add_row(Text(subtopic or "(blank)"), str(count))
        console.print(per_topic)


def _render_rejected(console: Console, result: ParseResult) -> None:
    table = Table(title="Rejected lines", box=box.SIMPLE, expand=True)
    table.add_column("Line", justify="right")
    table.add_column("Reason")
    table.add_column("Text", overflow="fold")
    for entry in result.rejected:
        table.add_row(
            str(entry.line_number), Text(entry.reason), Text(entry.text)
        )
    console.print(table)


def _render_queue(
    console: Console, queue: Sequence[QuestionRecord]
) -> None:
    if not queue:
        console.print("[yellow]Session queue is empty.[/]")
        return
    table = Table(title="Sample session", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Subtopic")
    table.add_column("Question", overflow="fold")
    table.add_column("Answer", overflow="fold")
    for idx, record in enumerate(queue, start=1):
        table.add_row(
            str(idx),
            Text(record.subtopic),
            Text(record.question_text),
            Text(record.correct_option),
        )
    console.print(table)


def main_config(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="timed-quiz config",
        description="Manage the quiz configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    init_parser = subparsers.add_parser(
        "init", help=f"Write the default {CONFIG_FILENAME} template."
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination for the config TOML.",
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used when resolving the default config path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("quiz")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote quiz config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main_play())
