"""
Synthora command-line interface.

Commands:
- validate: Check a specification JSON file against the structural invariants
- generate: Render a specification JSON file into a source tree
- template: Show the default ML configuration of a use case category
- stacks: List available code generation stacks
- chat: Build an app conversationally (needs an LLM provider)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ._version import get_version
from .core import ir
from .core.errors import ConfigError, SynthoraError
from .core.fileset import write_tree_sync
from .core.manifest import SynthoraConfig, load_config
from .core.validator import ValidationResult, validate, violations_from_error
from .ml.templates import get_template
from .stacks import DEFAULT_STACK, generate, get_backend, list_backends
from .synthesis.normalize import new_specification, utc_now

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="""Synthora - conversational app specification and code generation

  • Offline: validate, generate, template, stacks
    → Work on specification JSON files

  • Conversational: chat
    → Needs ANTHROPIC_API_KEY or OPENAI_API_KEY
""",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"Synthora version {get_version()}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.environ.get("SYNTHORA_LOG_LEVEL", "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Synthora CLI main callback for global options."""
    configure_logging(verbose)


# =============================================================================
# Helpers
# =============================================================================


def load_spec_file(path: Path) -> ir.AppSpecification:
    """
    Read a specification JSON file.

    Files without an app id get fresh ids assigned, like a newly created app.

    Raises:
        typer.Exit: If the file is missing, not JSON, or not spec-shaped
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        err_console.print(f"[red]✗ File not found: {path}[/red]")
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]✗ Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(code=1)

    try:
        spec = ir.AppSpecification.model_validate(data)
    except ValidationError as e:
        _print_violations(ValidationResult(violations=violations_from_error(e)))
        raise typer.Exit(code=1)

    if spec.id is None:
        spec = new_specification(spec, utc_now())
    return spec


def _print_violations(result: ValidationResult) -> None:
    table = Table(title=f"{len(result.violations)} violation(s)", show_lines=False)
    table.add_column("Entity", style="cyan")
    table.add_column("Rule", style="yellow")
    table.add_column("Message")
    for v in result.violations:
        table.add_row(v.entity_id, v.rule, v.message)
    err_console.print(table)


def _load_config(config_path: Path | None) -> SynthoraConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1)


# =============================================================================
# Offline commands
# =============================================================================


@app.command(name="validate")
def validate_command(
    spec_file: Path = typer.Argument(..., help="Specification JSON file"),
) -> None:
    """
    Validate a specification file.

    Exits with code 1 when any invariant is broken.
    """
    spec = load_spec_file(spec_file)
    result = validate(spec)
    if not result.is_valid:
        _print_violations(result)
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ {spec.name} v{spec.version} is valid[/green] "
        f"({len(spec.data_models)} models, {len(spec.screens)} screens, "
        f"{len(spec.workflows)} workflows)"
    )


@app.command(name="generate")
def generate_command(
    spec_file: Path = typer.Argument(..., help="Specification JSON file"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory (default: <output_dir>/<app id>)"
    ),
    stack: str | None = typer.Option(None, "--stack", "-s", help="Code generation stack"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to synthora.toml"),
) -> None:
    """
    Generate source code from a specification file.

    Nothing is written unless every artifact renders.
    """
    config = _load_config(config_path)
    spec = load_spec_file(spec_file)
    result = validate(spec)
    if not result.is_valid:
        _print_violations(result)
        raise typer.Exit(code=1)

    try:
        tree = generate(spec, stack=stack or config.generation.stack)
    except SynthoraError as e:
        err_console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1)

    target = output or Path(config.generation.output_dir) / spec.id
    written = write_tree_sync(target, tree)
    console.print(f"[green]✓ Generated {len(written)} files in {target}[/green]")


@app.command(name="template")
def template_command(
    category: str = typer.Argument(..., help="Use case category, e.g. churn_prediction"),
) -> None:
    """Show the default ML configuration for a use case category."""
    resolved = ir.MLCategory.coerce(category)
    if resolved.value != category:
        err_console.print(f"[dim]Using category: {resolved.value}[/dim]")
    console.print_json(json.dumps(get_template(resolved).to_wire()))


@app.command(name="stacks")
def stacks_command() -> None:
    """List available code generation stacks."""
    table = Table(title="Stacks")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Targets", style="dim")
    for stack_name in list_backends():
        capabilities = get_backend(stack_name).get_capabilities()
        name = capabilities.name
        if name == DEFAULT_STACK:
            name += " (default)"
        table.add_row(name, capabilities.description, ", ".join(capabilities.targets))
    console.print(table)


# =============================================================================
# Conversational command
# =============================================================================


@app.command(name="chat")
def chat_command(
    user: str = typer.Option("cli", "--user", "-u", help="User id for the session"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Path to synthora.toml"),
) -> None:
    """
    Build an app conversationally.

    Type a message to refine the app. Special inputs:
    /generate writes the source tree, /spec shows the current specification,
    /quit ends the session.
    """
    from .service import SynthoraService

    config = _load_config(config_path)
    try:
        service = SynthoraService.from_config(config)
    except (ValueError, ImportError) as e:
        err_console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    try:
        asyncio.run(_chat_loop(service, user))
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Session ended.[/dim]")


async def _chat_loop(service, user: str) -> None:
    from .service import OperationError

    session_id = await service.start_session(user)
    context = await service.get_context(session_id)
    console.print(f"[cyan]{context.history[-1].content}[/cyan]\n")

    while True:
        text = console.input("[bold]> [/bold]").strip()
        if not text:
            continue
        if text in ("/quit", "/exit"):
            await service.close_session(session_id)
            console.print("[dim]Session ended.[/dim]")
            return

        if text == "/spec":
            context = await service.get_context(session_id)
            if context.current_spec is None:
                console.print("[yellow]No app yet.[/yellow]")
            else:
                console.print_json(context.current_spec.model_dump_json(by_alias=True, exclude_none=True))
            continue

        if text == "/generate":
            result = await service.generate_app(session_id)
            if isinstance(result, OperationError):
                err_console.print(f"[red]✗ {result.message}[/red]")
            else:
                console.print(f"[green]✓ Generated {len(result.files)} files in {result.path}[/green]")
            continue

        result = await service.send_message(session_id, text)
        if isinstance(result, OperationError):
            err_console.print(f"[red]✗ {result.message}[/red]")
            return
        console.print(f"[cyan]{result.response}[/cyan]")
        for artifact in result.artifacts:
            console.print(f"[dim]  ↳ updated {artifact.type.value}[/dim]")
        console.print()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
