"""
Typer CLI for the trivia assessment service.

Commands:
    trivia db init              - Create database tables
    trivia questions import F   - Load a JSON file of questions into the pool
    trivia questions stats      - Question counts per category
    trivia users create         - Register a user (guest if no username)
    trivia users profile ID     - Show a user's rating and streak
    trivia seen purge           - Delete expired seen-question rows
    trivia serve                - Run the API server

Usage:
    trivia --help
    trivia questions import data/questions.json
    trivia questions stats --lang ru
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import get_settings
from src.core.logging_setup import configure_logging
from src.db.database import SessionLocal, init_db, session_scope
from src.db.repositories import SqlQuestionStore
from src.db.seen_store import SqlSeenQuestionStore
from src.engine.exceptions import EngineError
from src.users.service import UserService

app = typer.Typer(help="Trivia assessment engine CLI", no_args_is_help=True)
db_app = typer.Typer(help="Database management")
questions_app = typer.Typer(help="Question pool")
users_app = typer.Typer(help="Users")
seen_app = typer.Typer(help="Seen-question retention")

app.add_typer(db_app, name="db")
app.add_typer(questions_app, name="questions")
app.add_typer(users_app, name="users")
app.add_typer(seen_app, name="seen")

console = Console()


@app.callback()
def main_callback(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    settings = get_settings()
    configure_logging("DEBUG" if verbose else "WARNING", settings.log_file)


# ========================================
# Database
# ========================================


@db_app.command("init")
def db_init():
    """Create all tables."""
    init_db()
    console.print("[green]Database tables initialized[/green]")


# ========================================
# Questions
# ========================================


def _load_question_file(path: Path) -> list[dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{path} is not valid JSON: {e}")
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} must contain a list of questions")
    return data


def _valid_translations(entry) -> dict:
    """Translations of an entry that carry a prompt, 4 options and an in-range answer."""
    translations = entry.get("translations") if isinstance(entry, dict) else None
    if not isinstance(translations, dict):
        return {}

    valid = {}
    for lang, t in translations.items():
        if not isinstance(t, dict) or not t.get("prompt"):
            continue
        options = t.get("options")
        if not isinstance(options, list) or len(options) != 4:
            continue
        try:
            correct_idx = int(t.get("correct_idx", -1))
        except (TypeError, ValueError):
            continue
        if 0 <= correct_idx < 4:
            valid[lang] = {**t, "correct_idx": correct_idx}
    return valid


@questions_app.command("import")
def questions_import(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of questions"),
):
    """
    Import questions.

    Each entry: {"id"?, "category", "difficulty", "translations":
    {"en": {"prompt", "options": [4 strings], "correct_idx"}}}
    """
    entries = _load_question_file(path)
    imported = 0
    skipped = 0
    with session_scope() as session:
        store = SqlQuestionStore(session)
        for entry in entries:
            valid = _valid_translations(entry)
            if not valid:
                entry_id = entry.get("id") if isinstance(entry, dict) else None
                logger.warning(f"Skipping question without a valid translation: {entry_id}")
                skipped += 1
                continue
            store.add_question(
                entry.get("id"),
                entry.get("category", "general"),
                entry.get("difficulty", 3),
                valid,
                region=entry.get("region", "global"),
                source_urls=entry.get("source_urls"),
                verified=bool(entry.get("verified", False)),
            )
            imported += 1
    console.print(f"[green]Imported {imported} questions[/green] ({skipped} skipped)")


@questions_app.command("stats")
def questions_stats(
    lang: Optional[str] = typer.Option(None, "--lang", "-l", help="Only count this language"),
):
    """Show question counts per category."""
    with session_scope() as session:
        counts = SqlQuestionStore(session).count_by_category(lang)

    table = Table(title=f"Questions per category{f' ({lang})' if lang else ''}")
    table.add_column("Category", style="cyan")
    table.add_column("Questions", justify="right")
    for category, count in counts.items():
        table.add_row(category, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


# ========================================
# Users
# ========================================


def _user_service() -> UserService:
    settings = get_settings()
    return UserService(
        SessionLocal,
        supported_languages=settings.supported_languages,
        max_attempts=settings.max_registration_attempts,
    )


@users_app.command("create")
def users_create(
    username: Optional[str] = typer.Option(None, "--username", "-u"),
    locale: str = typer.Option("en", "--locale"),
):
    """Register a user."""
    try:
        user_id, name = _user_service().create_user(username, locale)
    except EngineError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1)
    console.print(f"Created user [cyan]{name}[/cyan] with id {user_id}")


@users_app.command("profile")
def users_profile(user_id: str = typer.Argument(...)):
    """Show a user's rating and streak."""
    try:
        profile = _user_service().get_profile(user_id)
    except EngineError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=profile.username, show_header=False)
    table.add_row("id", profile.id)
    table.add_row("locale", profile.locale)
    table.add_row("mu", f"{profile.mu:.2f}")
    table.add_row("current streak", str(profile.current_streak))
    table.add_row("best streak", str(profile.best_streak))
    console.print(table)


# ========================================
# Seen-set
# ========================================


@seen_app.command("purge")
def seen_purge():
    """Delete expired seen-question rows."""
    removed = SqlSeenQuestionStore(SessionLocal).purge_expired()
    console.print(f"Purged {removed} expired rows")


# ========================================
# Server
# ========================================


@app.command("serve")
def serve(reload: bool = typer.Option(False, "--reload")):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
