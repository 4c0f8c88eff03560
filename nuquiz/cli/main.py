"""
NuQuiz CLI.

Content-pack tooling for authors, working on JSON files without a database.

Usage:
    nuquiz validate pack.json              # check hierarchy + field rules
    nuquiz paths pack.json                 # "Category | Attribute" for every attribute
    nuquiz preview pack.json --seed 7      # generate and show questions
    nuquiz init-db                         # create tables at DATABASE_URL
"""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError as SchemaError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nuquiz.core.errors import QuizCoreError
from nuquiz.core.hierarchy import check_tree, count_by_type
from nuquiz.core.log_setup import configure_logging
from nuquiz.core.paths import InMemoryNodeLookup, PathResolver
from nuquiz.core.schemas import ContentPackFile
from nuquiz.core.types import NodeType
from nuquiz.quiz.generator import generate_question
from nuquiz.quiz.planner import plan_questions
from nuquiz.services.quiz_session_service import preview_questions

app = typer.Typer(
    name="nuquiz",
    help="NuQuiz - knowledge tree validation and question previews",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    configure_logging(level="DEBUG" if verbose else None)


def _load_pack(path: Path) -> ContentPackFile:
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return ContentPackFile.load(path)
    except (SchemaError, ValueError) as e:
        console.print(f"[red]Error: Invalid content pack file: {e}[/red]")
        raise typer.Exit(1)


@app.command("validate")
def validate(
    pack_file: Path = typer.Argument(..., help="Content pack JSON file"),
):
    """Check every node against the hierarchy and field rules."""
    pack = _load_pack(pack_file)
    nodes = pack.to_nodes()
    problems = check_tree(nodes)

    table = Table(title=f"{pack.name} ({len(nodes)} nodes)")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")
    for node_type, total in count_by_type(nodes).items():
        table.add_row(node_type.value, str(total))
    console.print(table)

    if problems:
        for problem in problems:
            console.print(f"  [red]x[/red] {problem}")
        console.print(f"\n[red]{len(problems)} problem(s) found[/red]")
        raise typer.Exit(1)

    console.print("[green]Hierarchy OK[/green]")


@app.command("paths")
def paths(
    pack_file: Path = typer.Argument(..., help="Content pack JSON file"),
):
    """Print the quiz path of every attribute."""
    pack = _load_pack(pack_file)
    lookup = InMemoryNodeLookup(pack.to_nodes())
    resolver = PathResolver(lookup)

    table = Table(title="Attribute paths")
    table.add_column("ID", justify="right")
    table.add_column("Path")
    table.add_column("Facts", justify="right")
    for node in lookup.all_nodes():
        if node.type != NodeType.ATTRIBUTE:
            continue
        fact_count = sum(1 for c in lookup.get_children(node.id) if c.type == NodeType.FACT)
        table.add_row(str(node.id), resolver.build_path(node.id), str(fact_count))
    console.print(table)


@app.command("preview")
def preview(
    pack_file: Path = typer.Argument(..., help="Content pack JSON file"),
    seed: int = typer.Option(1, "--seed", "-s", help="Session id used to derive question seeds"),
    count: int = typer.Option(5, "--count", "-n", help="Number of questions"),
    distractors: int = typer.Option(4, "--distractors", "-d", help="num_distractors"),
    show_answers: bool = typer.Option(True, "--answers/--no-answers", help="Mark correct options"),
):
    """Generate questions exactly as a session with id SEED would."""
    pack = _load_pack(pack_file)
    try:
        planned = plan_questions(
            pack.to_nodes(),
            question_count=count,
            session_id=seed,
            num_distractors=distractors,
        )
    except QuizCoreError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    questions = [generate_question(item.data, item.seed) for item in planned]
    for item, rendered in zip(planned, preview_questions(questions)):
        lines = []
        for option in rendered["options"]:
            if show_answers:
                marker = "[green]+[/green]" if option["is_correct"] else "[red]-[/red]"
            else:
                marker = " "
            lines.append(f"{marker} {option['order']}. {option['text']}")
        console.print(Panel(
            "\n".join(lines),
            title=f"Q{item.order}: {rendered['prompt']}",
            subtitle=f"seed {item.seed}",
        ))

    logger.debug(f"Previewed {len(planned)} questions from {pack_file}")


@app.command("init-db")
def init_database():
    """Create all tables at the configured DATABASE_URL."""
    from nuquiz.db.database import init_db

    init_db()
    console.print("[green]Database tables initialized[/green]")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
