import json
from pathlib import Path
from typing import Any, Literal, Optional, cast

import typer
from rich import print
from rich.table import Table
from tqdm import tqdm

from retail_assistant.config import settings
from retail_assistant.errors import InputError
from retail_assistant.service import AssistantService
from retail_assistant.utils.jsonl import read_jsonl

app = typer.Typer(help="Train and query the retail assistant from a terminal.")


def load_entries(path: Path) -> list[dict[str, Any]]:
    """Read {question, answer} records from a JSON array or a JSONL file."""
    if path.suffix == ".jsonl":
        return read_jsonl(path)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise InputError(f"{path} must contain a JSON array of FAQ objects")
    return data


def _service(backend: Optional[str]) -> AssistantService:
    if backend:
        settings.EMBED_BACKEND = cast(Literal["openai", "mock"], backend)
    return AssistantService()


@app.command()
def train(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array or JSONL file."),
    backend: Optional[str] = typer.Option(None, "--backend", help="Embedding backend: 'openai' or 'mock'."),
):
    """Bulk-train FAQ entries from FILE."""
    entries = load_entries(file)
    if not entries:
        print("[red]No FAQ entries found.[/red]")
        raise typer.Exit(code=1)

    service = _service(backend)
    size = settings.BULK_MAX_ENTRIES
    created = updated = failed = 0
    print(f"Training {len(entries)} entries in slices of {size}...")
    for start in tqdm(range(0, len(entries), size)):
        result = service.train_batch(entries[start : start + size])
        created += result.created
        updated += result.updated
        failed += result.failed
        for err in result.errors:
            print(f"[yellow]#{start + err.index} {err.question}: {err.error}[/yellow]")

    colour = "green" if failed == 0 else "yellow"
    print(f"[{colour}]{created} created, {updated} updated, {failed} failed[/{colour}]")


@app.command()
def ask(
    question: str,
    backend: Optional[str] = typer.Option(None, "--backend", help="Embedding backend: 'openai' or 'mock'."),
):
    """Resolve QUESTION and print the outcome."""
    outcome = _service(backend).resolve(question)
    print(outcome.to_dict())


@app.command()
def clear(yes: bool = typer.Option(False, "--yes", help="Skip confirmation.")):
    """Delete every FAQ entry."""
    if not yes:
        typer.confirm("Delete all FAQ entries?", abort=True)
    count = AssistantService().clear_all()
    print(f"[green]Deleted {count} FAQ entries[/green]")


@app.command()
def templates(category: str = typer.Option("all", "--category", help="Template category or 'all'.")):
    """List predefined question templates."""
    table = Table("Trigger phrase", "Action", "Category", "Description")
    for t in AssistantService().list_templates(category):
        table.add_row(t["trigger_phrase"], t["action_id"], t["category"], t["description"])
    print(table)


if __name__ == "__main__":
    app()
