import asyncio
import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from studio.core.config import settings
from studio.core.exceptions import ExecutionError, LabelConflictException
from studio.models.execution import ChatMessage
from studio.models.graph import Position
from studio.services.blueprint_compiler import BlueprintCompiler, CompilerOptions
from studio.services.canvas_import import load_canvas_file
from studio.services.execution_client import ExecutionClient
from studio.services.execution_service import ExecutionService
from studio.services.graph_state import GraphState

cli_app = typer.Typer()
console = Console()

_ROLE_STYLES = {
    "user": "bold blue",
    "system": "bold red",
}

def _load_state(graph: Path) -> GraphState:
    state = GraphState(default_position=Position(x=settings.DEFAULT_NODE_X, y=settings.DEFAULT_NODE_Y))
    try:
        return load_canvas_file(graph, state)
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Error:[/bold red] {graph} is not valid JSON: {escape(str(exc))}")
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] {graph} is not a valid canvas export:\n{escape(str(exc))}")
    except LabelConflictException as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc.message)} Labels must be unique within a graph.")
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    raise typer.Exit(code=1)

def _print_history(history: list[ChatMessage]) -> None:
    if not history:
        console.print("[dim]No messages.[/dim]")
        return
    for message in history:
        style = _ROLE_STYLES.get(message.role, "bold green")
        console.print(f"[{style}]{message.role.upper():<10}[/{style}] {escape(message.content)}")
        for call in message.tool_calls or []:
            console.print(f"           [yellow]-> {call.function.name}({json.dumps(call.function.arguments)})[/yellow]")

def _require_token() -> None:
    if not settings.RUNTIME_AUTH_TOKEN:
        console.print("[bold red]Error:[/bold red] RUNTIME_AUTH_TOKEN is not set in your .env file.")
        raise typer.Exit(code=1)

@cli_app.command("compile")
def compile_graph(
    graph: Path = typer.Option(..., "--graph", "-g", exists=True, dir_okay=False, help="Canvas export (JSON) to compile."),
):
    """
    Compiles a canvas export into a blueprint and prints it.
    """
    state = _load_state(graph)
    blueprint = BlueprintCompiler(CompilerOptions.from_settings(settings)).compile(state.snapshot())

    if not blueprint.graph.entry:
        console.print("[yellow]Warning: graph has no agent node, entry is empty.[/yellow]")
    console.print(Syntax(blueprint.to_json(indent=2), "json", theme="solarized-dark"))

@cli_app.command()
def run(
    graph: Path = typer.Option(..., "--graph", "-g", exists=True, dir_okay=False, help="Canvas export (JSON) to run."),
    user_input: str = typer.Option("Hello Agent", "--input", "-i", help="User input sent with the blueprint."),
):
    """
    Compiles a canvas export and runs it on the execution runtime.
    """
    _require_token()
    state = _load_state(graph)

    async def main():
        client = ExecutionClient.from_settings(settings)
        service = ExecutionService(client, BlueprintCompiler(CompilerOptions.from_settings(settings)))
        try:
            console.print(f"[cyan]Running against {settings.RUNTIME_URL}...[/cyan]")
            return await service.run(state, user_input)
        finally:
            await client.aclose()

    outcome = asyncio.run(main())
    _print_history(outcome.history)
    if outcome.execution_id:
        console.print(f"[cyan]Execution ID:[/cyan] {outcome.execution_id}")
    if outcome.status == "failed":
        raise typer.Exit(code=1)

@cli_app.command()
def history(
    execution_id: str = typer.Option(None, "--execution-id", "-e", help="Only show turns for this execution."),
):
    """
    Prints prior conversation turns from the execution runtime.
    """
    _require_token()

    async def main():
        client = ExecutionClient.from_settings(settings)
        try:
            return await client.get_history(execution_id)
        finally:
            await client.aclose()

    try:
        messages = asyncio.run(main())
    except ExecutionError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc.message)}")
        raise typer.Exit(code=1)
    _print_history(messages)


if __name__ == "__main__":
    cli_app()
