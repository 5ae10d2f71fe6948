"""Command-line interface for Todo CLI."""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_config, load_config
from .date_expr import TaskTagList, calculate_expr, resolve_text
from .errors import DateExprError
from .query_engine import QueryEngine
from .storage import Storage
from .todo import Task, priority_to_str
from .utils.datetime import format_date, parse_date, today


console = Console()


def _base_date(value: Optional[str]) -> date:
    """Parse the --base option, defaulting to today."""
    if not value:
        return today()
    parsed = parse_date(value)
    if parsed is None:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM-DD date", param_hint="--base")
    return parsed


def _fail(message: str):
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """Todo CLI - date expressions and tag filters for todo.txt files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['config'] = load_config(Path(config)) if config else get_config()


@main.command()
@click.argument("expression")
@click.option("--base", "-b", help="Base date (YYYY-MM-DD), today by default")
@click.option("--task", "-t", "task_text", help="Task text whose tags the expression may refer to")
@click.pass_context
def calc(ctx, expression, base, task_text):
    """Resolve a date EXPRESSION like 'fri+1w' or 'due-3d'."""
    config = ctx.obj['config']
    base_date = _base_date(base)
    tags = TaskTagList.from_task(Task.parse(task_text, base_date)) if task_text else None
    try:
        result = calculate_expr(base_date, expression, tags, config.soon_days)
    except DateExprError as e:
        _fail(str(e))
    console.print(format_date(result))


@main.command()
@click.argument("text")
@click.option("--base", "-b", help="Base date (YYYY-MM-DD), today by default")
@click.pass_context
def fix(ctx, text, base):
    """Replace expressions in due: and t: of a task TEXT with dates."""
    config = ctx.obj['config']
    try:
        fixed = resolve_text(_base_date(base), text, config.soon_days)
    except DateExprError as e:
        _fail(str(e))
    console.print(fixed, markup=False, highlight=False)


@main.command("list")
@click.option("--file", "-f", "todo_file", type=click.Path(), help="todo.txt file (default from config)")
@click.option("--filter", "-F", "query", default="", help="Tag filter, e.g. 'due=..today;pri=A,B'")
@click.option("--base", "-b", help="Base date (YYYY-MM-DD), today by default")
@click.pass_context
def list_tasks(ctx, todo_file, query, base):
    """List tasks matching a tag filter."""
    config = ctx.obj['config']
    base_date = _base_date(base)
    storage = Storage(Path(todo_file or config.todo_file))
    try:
        tasks = storage.load(base_date)
    except FileNotFoundError:
        _fail(f"todo file not found: {storage.path}")

    engine = QueryEngine(config.data_dir, config.use_regex)
    try:
        matched = engine.search(tasks, query, base_date)
    except KeyError as e:
        _fail(e.args[0])

    ids = {id(task): idx for idx, task in enumerate(tasks, 1)}
    table = Table(title=f"{len(matched)} of {len(tasks)} tasks")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Pri", style="yellow")
    table.add_column("Due", style="blue")
    table.add_column("Subject")
    for task in matched:
        due = format_date(task.due_date) if task.due_date else ""
        subject = escape(task.subject)
        if task.finished:
            subject = f"[strike]{subject}[/strike]"
        table.add_row(str(ids[id(task)]), priority_to_str(task.priority), due, subject)
    console.print(table)


@main.group()
def query():
    """Manage saved filters."""
    pass


@query.command("save")
@click.argument("name")
@click.argument("filter_text")
@click.pass_context
def query_save(ctx, name, filter_text):
    """Save FILTER_TEXT under NAME; use it later as '@NAME'."""
    config = ctx.obj['config']
    QueryEngine(config.data_dir).save_query(name, filter_text)
    console.print(f"[green]Saved filter '{name}'[/green]")


@query.command("list")
@click.pass_context
def query_list(ctx):
    """Show saved filters."""
    config = ctx.obj['config']
    saved = QueryEngine(config.data_dir).list_saved_queries()
    if not saved:
        console.print("[dim]No saved filters[/dim]")
        return
    for name, filter_text in sorted(saved.items()):
        console.print(f"[cyan]@{escape(name)}[/cyan] {escape(filter_text)}", highlight=False)


@query.command("delete")
@click.argument("name")
@click.pass_context
def query_delete(ctx, name):
    """Delete the saved filter NAME."""
    config = ctx.obj['config']
    if not QueryEngine(config.data_dir).delete_query(name):
        _fail(f"Saved filter '{name}' not found")
    console.print(f"[green]Deleted filter '{name}'[/green]")


if __name__ == "__main__":
    main()
