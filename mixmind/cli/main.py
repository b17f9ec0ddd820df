"""
Typer CLI for the MixMind scheduler.

Commands:
    mixmind modules                 - List catalog modules
    mixmind plan USER MODULE        - Plan the next practice session
    mixmind answer USER ITEM RESP   - Record an answer and update learner state
    mixmind stats USER              - Show progress and exercise-type bandit stats
    mixmind recommend SKILL         - Item difficulty for a target success rate
    mixmind init-db                 - Initialize database tables

Usage:
    mixmind plan alice ch1-intro --minutes 6 --seed 7
    mixmind answer alice item-glass-1 1 --ms 4200
    mixmind recommend 0.6 --target 0.8
"""

from __future__ import annotations

import asyncio
import random
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mixmind.config import get_settings
from mixmind.db.database import build_async_engine, init_db, make_session_factory
from mixmind.db.repositories import SqlBanditRepository, SqlContentRepository, SqlProgressRepository
from mixmind.domain import ExerciseType, Item
from mixmind.learning.bandit import get_bandit_stats
from mixmind.learning.difficulty import recommend_difficulty
from mixmind.learning.spaced_repetition import now_ms
from mixmind.repos.catalog import load_catalog
from mixmind.repos.memory import MemoryContentRepository
from mixmind.study.interleaver import AdaptiveInterleaver
from mixmind.study.practice_service import PracticeService
from mixmind.study.scheduler import SchedulerConfig, SessionScheduler, analyze_session_performance

app = typer.Typer(
    help="MixMind: adaptive practice scheduling for bartending lessons",
    no_args_is_help=True,
)

console = Console()


# ========================================
# Service Wiring
# ========================================


@dataclass
class Services:
    """Collaborators for one CLI invocation."""

    content: SqlContentRepository
    progress: SqlProgressRepository
    scheduler: SessionScheduler
    practice: PracticeService


@asynccontextmanager
async def open_services(seed: int | None = None) -> AsyncIterator[Services]:
    """
    Wire the catalog, the configured database and the scheduler.

    The engine lives only as long as the command so it never outlives the
    event loop that created it.
    """
    settings = get_settings()
    engine = build_async_engine(settings.database_url)
    try:
        await init_db(engine)
        factory = make_session_factory(engine)

        content = SqlContentRepository(MemoryContentRepository(load_catalog(settings.catalog_path)), factory)
        progress = SqlProgressRepository(factory)
        scheduler = SessionScheduler(
            content,
            progress,
            bandits=SqlBanditRepository(factory),
            config=SchedulerConfig.from_settings(settings),
            rng=random.Random(seed) if seed is not None else None,
        )
        yield Services(
            content=content,
            progress=progress,
            scheduler=scheduler,
            practice=PracticeService(scheduler, content, progress),
        )
    finally:
        await engine.dispose()


def _parse_response(item: Item, raw: str) -> Any:
    """Convert command-line text into the response shape the item grades."""
    if item.type == ExerciseType.ORDER:
        return [part.strip() for part in raw.split(",")]
    return raw


# ========================================
# CONTENT COMMANDS
# ========================================


@app.command("modules")
def list_modules() -> None:
    """List the modules in the content catalog."""

    async def _run() -> None:
        content = MemoryContentRepository(load_catalog(get_settings().catalog_path))
        modules = await content.list_modules()

        table = Table(title=f"Modules ({len(modules)})")
        table.add_column("ID", style="cyan")
        table.add_column("Title")
        table.add_column("Chapter", justify="right")
        table.add_column("Lessons", justify="right")
        table.add_column("Minutes", justify="right", style="dim")

        for module in modules:
            lessons = module.lesson_ids or [
                lesson.id for lesson in await content.get_lessons_for_module(module.id)
            ]
            table.add_row(
                module.id,
                module.title,
                str(module.chapter_index),
                str(len(lessons)),
                str(module.estimated_minutes),
            )

        console.print(table)

    asyncio.run(_run())


# ========================================
# SESSION COMMANDS
# ========================================


@app.command("plan")
def plan_session(
    user_id: str = typer.Argument(..., help="Learner ID"),
    module_id: str = typer.Argument(..., help="Module to study"),
    minutes: float | None = typer.Option(None, "--minutes", "-m", help="Target session length"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible plans"),
) -> None:
    """Plan the next interleaved practice session."""

    async def _run() -> None:
        async with open_services(seed) as services:
            plan = await services.scheduler.get_next_session_plan(
                user_id, module_id, target_minutes=minutes
            )

        if plan.is_empty:
            rprint("[yellow]No items due right now.[/yellow]")
            return

        table = Table(title=f"Session plan: {user_id} / {module_id}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Item", style="cyan")
        table.add_column("Type")
        table.add_column("Difficulty", justify="right")
        table.add_column("Prompt")

        for position, item in enumerate(plan.items, 1):
            table.add_row(
                str(position),
                item.id,
                item.type.value,
                f"{item.difficulty:.2f}",
                item.prompt,
            )

        console.print(table)

        summary = AdaptiveInterleaver.summarize(plan)
        console.print(
            Panel(
                f"New: {summary['current_items']}  Review: {summary['review_items']}  "
                f"Older: {summary['older_items']}\n"
                f"Estimated: {summary['estimated_minutes']} min  "
                f"Review ratio: {summary['review_ratio']:.0%}",
                title="Mix",
                border_style="green",
            )
        )

    asyncio.run(_run())


@app.command("answer")
def answer_item(
    user_id: str = typer.Argument(..., help="Learner ID"),
    item_id: str = typer.Argument(..., help="Item that was answered"),
    response: str = typer.Argument(..., help="Option index, comma-separated order, or text"),
    ms: int = typer.Option(5000, "--ms", help="Response time in milliseconds"),
) -> None:
    """Record an answer and update review state, skill and bandit."""

    async def _run() -> None:
        async with open_services() as services:
            item = await services.content.get_item(item_id)
            if item is None:
                rprint(f"[red]Unknown item:[/red] {item_id}")
                raise typer.Exit(code=1)

            outcome = await services.practice.record_attempt(
                user_id,
                item,
                response=_parse_response(item, response),
                ms_to_answer=ms,
            )

        verdict = "[green]Correct[/green]" if outcome.correct else "[red]Incorrect[/red]"
        rprint(f"{verdict} on {item.id}")
        rprint(
            f"  Mastery {outcome.previous_state.mastery:.3f} -> {outcome.review_state.mastery:.3f}"
            f"  Stability {outcome.review_state.stability:.2f}"
        )
        rprint(
            f"  Skill {outcome.user_skill:.3f}  Item difficulty {outcome.item_difficulty:.3f}"
            f"  Streak {outcome.progress.streak}"
        )

    asyncio.run(_run())


@app.command("stats")
def show_stats(
    user_id: str = typer.Argument(..., help="Learner ID"),
) -> None:
    """Show progress totals and exercise-type bandit statistics."""

    async def _run() -> None:
        async with open_services() as services:
            progress = await services.progress.list_user_progress(user_id)
            due = await services.progress.get_due_items(user_id, now_ms())
            attempts = await services.progress.get_attempts(user_id)
            bandit = await services.scheduler.get_bandit(user_id)

        analysis = analyze_session_performance([], attempts)
        avg_mastery = sum(p.mastery for p in progress) / len(progress) if progress else 0.0

        console.print(
            Panel(
                f"Items tracked: {len(progress)}  Due now: {len(due)}\n"
                f"Average mastery: {avg_mastery:.2f}\n"
                f"Attempts: {len(attempts)}  Accuracy: {analysis.average_accuracy:.0%}  "
                f"Avg time: {analysis.average_time / 1000:.1f}s\n"
                f"Suggested adjustment: {analysis.recommended_adjustment}",
                title=f"Progress: {user_id}",
                border_style="cyan",
            )
        )

        table = Table(title=f"Exercise types (epsilon {bandit.epsilon:.2f})")
        table.add_column("Type", style="cyan")
        table.add_column("Avg reward", justify="right")
        table.add_column("Attempts", justify="right")
        table.add_column("Confidence", justify="right")

        for stats in get_bandit_stats(bandit):
            table.add_row(
                stats.type.value,
                f"{stats.average_reward:.3f}",
                str(stats.attempts),
                f"{stats.confidence:.0%}",
            )

        console.print(table)

    asyncio.run(_run())


@app.command("recommend")
def recommend(
    skill: float = typer.Argument(..., help="Learner skill (0-1)"),
    target: float | None = typer.Option(None, "--target", "-t", help="Target success rate"),
) -> None:
    """Show the item difficulty that yields a target success rate."""
    if target is None:
        target = get_settings().target_success_rate

    try:
        difficulty = recommend_difficulty(skill, target)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    rprint(f"Recommended difficulty: [bold]{difficulty:.4f}[/bold] (skill {skill}, target {target:.0%})")


# ========================================
# DATABASE COMMANDS
# ========================================


@app.command("init-db")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")

    async def _run() -> None:
        engine = build_async_engine()
        try:
            await init_db(engine)
        finally:
            await engine.dispose()

    asyncio.run(_run())
    rprint("[green]✓[/green] Database initialized!")


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="<level>{message}</level>")
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)

    app()


if __name__ == "__main__":
    main()
