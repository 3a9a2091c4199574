#!/usr/bin/env python3
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from cryptstr import config
from cryptstr import CryptStrError, LiteralManifest, ObfuscatedString, XorTransform, crypt
from manifest_command import manifest_app

app = typer.Typer(help="Embed obfuscated string literals and decode them into wiped views")
app.add_typer(manifest_app)
console = Console()


def setup_logging() -> None:
    """Send log records to the log file in the configuration directory."""
    config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=config.LOG_FILE,
        level=getattr(logging, config.LOG_LEVEL, logging.ERROR),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def log_error(error: Exception, function_name: str) -> None:
    """Log errors to the configured logging file."""
    logging.error(f"Error in {function_name}: {str(error)}")


def fail(error: Exception, function_name: str):
    log_error(error, function_name)
    typer.secho(f"Error: {str(error)}", fg=typer.colors.RED)
    raise typer.Exit(1)


@app.callback()
def main():
    setup_logging()


def load_generated_module(module_file: Path):
    """Import a generated module from its file path."""
    spec = importlib.util.spec_from_file_location(module_file.stem, module_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import {module_file}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def resolve_literal(module, name: str) -> ObfuscatedString:
    """Find ``group.IDENTIFIER`` in a generated module."""
    group_name, _, identifier = name.partition(".")
    if not identifier:
        raise ValueError(f"Expected group.IDENTIFIER, got '{name}'")
    group = getattr(module, group_name, None)
    literal = getattr(group, identifier, None) if group is not None else None
    if not isinstance(literal, ObfuscatedString):
        raise LookupError(f"No obfuscated literal named '{name}'")
    return literal


@app.command()
def encode(
    literal: str = typer.Argument(..., help="Literal to obfuscate"),
    key: str = typer.Option(hex(config.DEFAULT_XOR_KEY), "--key", "-k", help="XOR key"),
    as_bytes: bool = typer.Option(False, "--bytes", "-b", help="Treat the literal as UTF-8 bytes"),
    length: Optional[int] = typer.Option(None, "--length", "-l", help="Declared length to check"),
):
    """Show the cipher ordinals of a literal under the XOR transform"""
    try:
        transform = XorTransform(int(key, 0))
        source = literal.encode("utf-8") if as_bytes else literal
        obfuscated = crypt(transform, source, length)
    except (CryptStrError, ValueError) as e:
        fail(e, "encode")

    console.print(f"{transform!r}, {obfuscated.size()} elements")
    table = Table(title="Cipher Ordinals")
    table.add_column("Index", style="cyan")
    table.add_column("Cipher", style="green")
    for index, value in enumerate(obfuscated.cipher_view().ordinals()):
        table.add_row(str(index), f"{value:#06x}")
    console.print(table)


@app.command()
def generate(
    manifest_file: Path = typer.Argument(..., help="Literal manifest (.cryptstr)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Module to write"),
):
    """Generate a Python module holding the obfuscated literals of a manifest"""
    output = output or manifest_file.with_suffix(".py")
    try:
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        manifest.save_module(str(output))
        leaks = manifest.scan_artifact(str(output))
    except (CryptStrError, OSError, ValueError) as e:
        fail(e, "generate")

    if leaks:
        output.unlink()
        fail(ValueError(f"Plaintext found in generated module for: {', '.join(leaks)}"), "generate")

    results_table = Table(title="Generated Literals")
    results_table.add_column("Group", style="cyan")
    results_table.add_column("Identifier", style="green")
    results_table.add_column("Size", justify="right")
    results_table.add_column("Transform", style="magenta")
    for group_name, entry in manifest.entries():
        results_table.add_row(group_name, entry.identifier, str(len(entry.value)), entry.options[0])
    console.print(results_table)
    typer.secho(f"Module written: {output}", fg=typer.colors.GREEN)


@app.command()
def verify(
    manifest_file: Path = typer.Argument(..., help="Literal manifest (.cryptstr)"),
    artifact: Path = typer.Argument(..., help="Generated module or any built file"),
):
    """Check that no plaintext literal appears in an artifact"""
    try:
        manifest = LiteralManifest()
        manifest.load_file(str(manifest_file))
        leaks = manifest.scan_artifact(str(artifact))
    except (CryptStrError, OSError, ValueError, SyntaxError) as e:
        fail(e, "verify")

    if leaks:
        table = Table(title="Plaintext Found")
        table.add_column("Identifier", style="red")
        for identifier in leaks:
            table.add_row(identifier)
        console.print(table)
        raise typer.Exit(1)
    typer.secho(f"No plaintext found in {artifact}", fg=typer.colors.GREEN)


@app.command()
def reveal(
    module_file: Path = typer.Argument(..., help="Generated module"),
    name: str = typer.Argument(..., help="Literal as group.IDENTIFIER"),
):
    """Decode one literal of a generated module and print it"""
    try:
        literal = resolve_literal(load_generated_module(module_file), name)
    except (CryptStrError, ImportError, LookupError, OSError, ValueError) as e:
        fail(e, "reveal")

    with literal.decode() as view:
        if view.char_type is bytes:
            sys.stdout.flush()
            view.render(sys.stdout.buffer)
            sys.stdout.buffer.flush()
        else:
            view.render(sys.stdout)
    sys.stdout.write("\n")


if __name__ == "__main__":
    app()
