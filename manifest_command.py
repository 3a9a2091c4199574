from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from cryptstr import CryptStrError, Entry, LiteralManifest

manifest_app = typer.Typer(name="manifest", help="Literal manifest commands")
console = Console()


def display_manifest_structure():
    """Display the structure of a .cryptstr file with syntax highlighting"""
    sample_structure = """# cryptstr literal manifest

group protocol {
    [FIRST_MARKER = "FIRST CRYPTED STRING"]:xor,0x1337;
    [SECOND_MARKER(21) = "SECOND CRYPTED STRING"]:xor;
    [ELF_MAGIC = b"\\x7fELF"]:keystream;
}"""

    syntax = Syntax(
        sample_structure,
        lexer="python",
        theme="monokai",
        background_color="default",
        line_numbers=False,
        highlight_lines=set()
    )

    console.print("\n[cyan]Manifest File Structure:[/cyan]")
    console.print("-" * 50)
    console.print(syntax)
    console.print("-" * 50)


def load_manifest(file: Path) -> LiteralManifest:
    manifest = LiteralManifest()
    manifest.load_file(str(file))
    return manifest


@manifest_app.command()
def init(
    file: Path = typer.Option(Path("literals.cryptstr"), "--file", "-f", help="Manifest file path")
):
    """Initialize a new literal manifest"""
    try:
        created = LiteralManifest().create_manifest_file(str(file))
        display_manifest_structure()
        typer.secho(f"Manifest created: {created}", fg=typer.colors.GREEN)
    except (CryptStrError, OSError) as e:
        typer.secho(f"Error: {str(e)}", fg=typer.colors.RED)
        raise typer.Exit(1)


@manifest_app.command()
def add(
    group: str = typer.Option(..., "--group", "-g", help="Group name"),
    identifier: str = typer.Option(..., "--id", "-i", help="Literal identifier"),
    value: str = typer.Option(..., "--value", "-v", help="Literal value"),
    transform: str = typer.Option("xor", "--transform", "-t", help="Transform and parameters, comma separated"),
    as_bytes: bool = typer.Option(False, "--bytes", "-b", help="Store the value as UTF-8 bytes"),
    file: Path = typer.Option(Path("literals.cryptstr"), "--file", "-f", help="Manifest file")
):
    """Add a literal to a manifest"""
    try:
        manifest = load_manifest(file)

        options = [t.strip() for t in transform.split(",")]
        literal = value.encode("utf-8") if as_bytes else value
        entry = Entry(identifier, literal, options)

        manifest.add_entry(group, entry)
        manifest.build_entry(entry)
        manifest.save_file(str(file))

        results_table = Table(title="Operation Results")
        results_table.add_column("Operation", style="cyan")
        results_table.add_column("Result", style="green")
        results_table.add_row("Add Literal", f"Added '{identifier}' to '{group}'")
        console.print(results_table)

    except (CryptStrError, OSError, ValueError) as e:
        typer.secho(f"Error: {str(e)}", fg=typer.colors.RED)
        raise typer.Exit(1)


@manifest_app.command("list")
def list_literals(
    file: Path = typer.Option(Path("literals.cryptstr"), "--file", "-f", help="Manifest file")
):
    """List the literals of a manifest without their values"""
    try:
        manifest = load_manifest(file)
    except (CryptStrError, OSError, ValueError) as e:
        typer.secho(f"Error: {str(e)}", fg=typer.colors.RED)
        raise typer.Exit(1)

    table = Table(title=str(file))
    table.add_column("Group", style="cyan")
    table.add_column("Identifier", style="green")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Transform", style="magenta")
    for group_name, entry in manifest.entries():
        table.add_row(
            group_name,
            entry.identifier,
            entry.char_type.__name__,
            str(len(entry.value)),
            ",".join(entry.options),
        )
    console.print(table)


@manifest_app.command()
def remove(
    group: str = typer.Option(..., "--group", "-g", help="Group name"),
    identifier: str = typer.Option(..., "--id", "-i", help="Literal identifier"),
    file: Path = typer.Option(Path("literals.cryptstr"), "--file", "-f", help="Manifest file")
):
    """Remove a literal from a manifest"""
    try:
        manifest = load_manifest(file)
        if not manifest.delete_entry(group, identifier):
            typer.secho(f"No literal '{identifier}' in group '{group}'", fg=typer.colors.YELLOW)
            raise typer.Exit(1)
        manifest.save_file(str(file))
    except (CryptStrError, OSError, ValueError) as e:
        typer.secho(f"Error: {str(e)}", fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.secho(f"Removed '{identifier}' from '{group}'", fg=typer.colors.GREEN)
