"""Lexis CLI — review recording, session selection, goals and weak-word analysis."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml  # type: ignore
from pydantic import ValidationError as ConfigError

from lexis.application.config import AppConfig, resolve_config
from lexis.domain.errors import LexisError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="lexis: adaptive spaced-repetition scheduler for vocabulary learning.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

goal_app = typer.Typer(help="Create and track learning goals.", no_args_is_help=True)
app.add_typer(goal_app, name="goal")

config_app = typer.Typer(help="Manage lexis configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(**kwargs: Any) -> AppConfig:
    overrides = {k: v for k, v in kwargs.items() if v is not None}
    try:
        config = resolve_config(overrides)
    except ConfigError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(1)
    if config.verbose >= 3:
        logging.getLogger("lexis").setLevel(logging.DEBUG)
    elif config.verbose == 2:
        logging.getLogger("lexis").setLevel(logging.INFO)
    return config


def _run(ctx: typer.Context, func, **overrides: Any):
    """Build the service from config and run one coroutine against it."""
    from lexis.application.factory import get_service

    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1), **overrides)
    service = get_service(config)
    try:
        return asyncio.run(func(service, config))
    except LexisError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _parse_outcome(pairs: list[str]) -> dict[str, Any]:
    outcome: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            typer.secho(f"Invalid outcome field '{pair}', expected key=value.", fg="red", err=True)
            raise typer.Exit(2)
        # yes/no, numbers and floats parse the same way they would in a config file
        outcome[key.strip()] = yaml.safe_load(raw)
    return outcome


def _jsonable(value: Any) -> Any:
    if isinstance(value, date | datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def _dump(obj: Any) -> dict[str, Any]:
    return {k: _jsonable(v) for k, v in asdict(obj).items()}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for lexis."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def version():
    """Show the installed version."""
    from lexis.consts import VERSION

    typer.echo(f"lexis {VERSION}")


@app.command()
def logs():
    """Print the log directory, creating it if needed."""
    config = _resolve_with_overrides()
    if not config.log_dir.exists():
        config.log_dir.mkdir(parents=True, exist_ok=True)
    typer.echo(str(config.log_dir))


@app.command()
def normalize(
    kind: Annotated[str, typer.Argument(help="Activity kind, e.g. flashcard or hangman.")],
    outcome: Annotated[
        list[str] | None,
        typer.Option("--outcome", "-o", help="Outcome field as key=value. Repeatable."),
    ] = None,
):
    """Map an activity outcome onto the 0-5 quality scale."""
    from lexis.application.quality import normalize as normalize_outcome

    try:
        quality = normalize_outcome(kind, _parse_outcome(outcome or []))
    except LexisError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)
    typer.echo(f"{quality:g}")


@app.command()
def review(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    card_id: Annotated[str, typer.Argument(help="Card id.")],
    quality: Annotated[float, typer.Argument(help="Recall quality, 0-5.")],
    today: Annotated[
        datetime | None, typer.Option(formats=["%Y-%m-%d"], help="Review date. Defaults to today.")
    ] = None,
    goal: Annotated[str | None, typer.Option(help="Goal id for deadline compression.")] = None,
    activity: Annotated[
        str | None, typer.Option(help="Activity kind; selects the mastery score cap.")
    ] = None,
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """[bold green]Record[/bold green] one review of a card."""
    review_day = today.date() if today else date.today()

    async def _go(service, config):
        return await service.apply_review(
            user_id, card_id, quality, review_day, goal_id=goal, activity=activity
        )

    state = _run(ctx, _go, backend=backend)
    typer.echo(
        f"{card_id}: level {state.mastery_level}, EF {state.easiness_factor:.2f}, "
        f"interval {state.interval_days}d, next review {state.next_review_date}"
    )


@app.command()
def session(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    goal_id: Annotated[str, typer.Argument(help="Goal id.")],
    today: Annotated[
        datetime | None, typer.Option(formats=["%Y-%m-%d"], help="Session date.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Pick today's cards for a goal, most urgent first."""
    session_day = today.date() if today else date.today()

    async def _go(service, config):
        return await service.select_session(user_id, goal_id, session_day)

    cards = _run(ctx, _go, backend=backend)

    if json_output:
        rows = [
            {"card_id": c.card_id, "priority": c.priority_score, "reason": c.priority_reason.value}
            for c in cards
        ]
        typer.echo(json.dumps(rows, indent=2))
        return

    if not cards:
        typer.secho("No cards to study.", fg="yellow")
        return
    for c in cards:
        typer.echo(f"  {c.card_id:<24} {c.priority_reason.value:<13} {c.priority_score:g}")
    typer.echo(f"Total: {len(cards)}")


@app.command("weak-words")
def weak_words(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    goal: Annotated[
        str | None, typer.Option(help="Scope analysis to a goal's decks and lifetime.")
    ] = None,
    limit: Annotated[int | None, typer.Option(help="Maximum number of words.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """List the words most at risk of being forgotten."""

    async def _go(service, config):
        deck_ids = None
        cutoff = None
        if goal:
            g = await service.get_goal(goal)
            deck_ids = list(g.deck_ids) or None
            cutoff = g.created_at
        return await service.rank_weak_words(
            user_id, deck_ids=deck_ids, cutoff=cutoff, limit=limit or config.weak_word_limit
        )

    entries = _run(ctx, _go, backend=backend)

    if json_output:
        typer.echo(json.dumps([_dump(e) for e in entries], indent=2))
        return

    if not entries:
        typer.secho("No weak words.", fg="green")
        return
    for e in entries:
        typer.echo(f"  {e.word:<24} wrong {e.times_wrong:<4} danger {e.danger_score:.2f}")


@app.command()
def assess(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    wrong: Annotated[
        list[str] | None, typer.Option("--wrong", help="Card answered wrong. Repeatable.")
    ] = None,
    right: Annotated[
        list[str] | None, typer.Option("--right", help="Card answered right. Repeatable.")
    ] = None,
    today: Annotated[
        datetime | None, typer.Option(formats=["%Y-%m-%d"], help="Assessment date.")
    ] = None,
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Apply interim test results: reset missed cards, boost known ones."""
    test_day = today.date() if today else date.today()

    async def _go(service, config):
        return await service.apply_assessment(user_id, wrong or [], right or [], test_day)

    result = _run(ctx, _go, backend=backend)
    typer.echo(f"Reset: {result.reset}  Boosted: {result.boosted}  Skipped: {result.skipped}")


# ---------------------------------------------------------------------------
# Goal subgroup
# ---------------------------------------------------------------------------


@goal_app.command("create")
def goal_create(
    ctx: typer.Context,
    user_id: Annotated[str, typer.Argument(help="Learner id.")],
    target_words: Annotated[int, typer.Option("--words", help="Words to learn.")],
    duration_days: Annotated[int, typer.Option("--days", help="Plan length in days.")],
    sessions_per_day: Annotated[int, typer.Option("--sessions", help="Sessions per day.")] = 2,
    deck: Annotated[
        list[str] | None, typer.Option("--deck", help="Deck id to study. Repeatable.")
    ] = None,
    name: Annotated[str, typer.Option(help="Goal name.")] = "",
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Create a new learning goal."""

    async def _go(service, config):
        return await service.create_goal(
            user_id,
            target_words=target_words,
            duration_days=duration_days,
            sessions_per_day=sessions_per_day,
            deck_ids=deck or [],
            goal_name=name,
        )

    goal = _run(ctx, _go, backend=backend)
    typer.secho(f"Created goal {goal.goal_id}", fg="green")


@goal_app.command("show")
def goal_show(
    ctx: typer.Context,
    goal_id: Annotated[str, typer.Argument(help="Goal id.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Show a goal and its progress."""
    from lexis.application.goals import goal_progress

    async def _go(service, config):
        return await service.get_goal(goal_id)

    goal = _run(ctx, _go, backend=backend)
    progress = goal_progress(goal)

    if json_output:
        typer.echo(json.dumps({"goal": _dump(goal), "progress": _dump(progress)}, indent=2))
        return

    status = "active" if goal.is_active else "completed"
    typer.echo(f"{goal.goal_name or goal.goal_id} ({status})")
    typer.echo(f"  Day {goal.current_day}/{goal.duration_days}, {goal.days_remaining} remaining")
    typer.echo(
        f"  Words: {goal.words_learned}/{goal.target_words} "
        f"({progress.percent_complete:.0f}%)"
    )
    typer.echo(f"  Sessions today: {progress.sessions_today}/{progress.sessions_per_day}")


@goal_app.command("target")
def goal_target(
    ctx: typer.Context,
    goal_id: Annotated[str, typer.Argument(help="Goal id.")],
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Show today's new/review card target for a goal."""

    async def _go(service, config):
        return await service.compute_target(goal_id)

    target = _run(ctx, _go, backend=backend)
    typer.echo(json.dumps(_dump(target), indent=2))


@goal_app.command("plan")
def goal_plan(
    target_words: Annotated[int, typer.Option("--words", help="Words to learn.")],
    duration_days: Annotated[int | None, typer.Option("--days", help="Plan length.")] = None,
    session_cap: Annotated[int, typer.Option("--cap", help="Words per session.")] = 20,
    sessions_per_day: Annotated[int, typer.Option("--sessions", help="Sessions per day.")] = 2,
    intensity: Annotated[
        bool, typer.Option("--intensity", help="Derive the plan length from the daily load.")
    ] = False,
):
    """Estimate the workload of a prospective goal."""
    from lexis.application.goals import calculate_goal_requirements

    req = calculate_goal_requirements(
        target_words,
        duration_days,
        target_session_cap=session_cap,
        target_sessions_per_day=sessions_per_day,
        planning_mode="intensity" if intensity else "duration",
    )
    typer.echo(json.dumps(_dump(req), indent=2))


@goal_app.command("record")
def goal_record(
    ctx: typer.Context,
    goal_id: Annotated[str, typer.Argument(help="Goal id.")],
    cards: Annotated[int, typer.Option("--cards", help="New words completed this session.")],
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Record a completed study session."""

    async def _go(service, config):
        return await service.record_session(goal_id, cards)

    goal = _run(ctx, _go, backend=backend)
    typer.echo(f"Words: {goal.words_learned}/{goal.target_words}")
    if not goal.is_active:
        typer.secho("Goal complete!", fg="green")


@goal_app.command("advance")
def goal_advance(
    ctx: typer.Context,
    goal_id: Annotated[str, typer.Argument(help="Goal id.")],
    backend: Annotated[str | None, typer.Option(help="Store backend: sqlite, memory.")] = None,
):
    """Move a goal to its next day."""

    async def _go(service, config):
        return await service.advance_day(goal_id)

    goal = _run(ctx, _go, backend=backend)
    typer.echo(f"Day {goal.current_day}/{goal.duration_days}")


@goal_app.command("windows")
def goal_windows(
    times: Annotated[list[str], typer.Argument(help="Session times as HH:MM, in order.")],
):
    """Show when each of today's sessions may be started."""
    from lexis.application.session_windows import session_window, window_label

    now = datetime.now()
    for i, scheduled in enumerate(times):
        try:
            window = session_window(times, i, now)
        except ValueError as e:
            typer.secho(f"Invalid session time: {e}", fg="red", err=True)
            raise typer.Exit(2)
        line = f"  {scheduled}  {window_label(window)}  {window.status}"
        if window.minutes_until_start is not None:
            line += f" (opens in {window.minutes_until_start} min)"
        typer.echo(line)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = _resolve_with_overrides()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()
