"""
envedit CLI - edit .env files from the command line

Main entry point for the envedit command-line tool.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .core.backup import BackupManager
from .core.config import EditorConfig
from .core.editor import DotenvEditor
from .core.exceptions import DotenvEditorError
from .core.parser import GrammarVersion


console = Console()


def configure_logging(verbose: bool):
    """Route library logging through rich when --verbose is given."""
    if not verbose:
        return

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def comment_argument(value: Optional[str]) -> Optional[str]:
    """
    Interpret the COMMENT argument of set-key.

    "null" (or nothing) keeps the current comment, "false" clears it.
    """
    if value is None or value.lower() == "null":
        return None
    if value.lower() == "false":
        return ""
    return value


@contextmanager
def reported_errors():
    """Print editor errors as user-facing messages and exit with status 1."""
    try:
        yield
    except DotenvEditorError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        sys.exit(1)


def open_editor(ctx: click.Context, filepath: Optional[str]) -> DotenvEditor:
    config: EditorConfig = ctx.obj
    return DotenvEditor(config, file_path=filepath)


def grammar_option(ctx, param, value):
    if value is None:
        return None
    try:
        return GrammarVersion.parse(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


filepath_option = click.option(
    '--filepath',
    default=None,
    help='The .env file to work with (default: .env in the current directory)'
)


@click.group()
@click.option('--grammar', callback=grammar_option,
              help='Grammar version: v1, v2, v3, or an upstream dotenv version such as 5.4.1')
@click.option('--backup-path', default=None, help='Directory for backups')
@click.option('--no-backup', is_flag=True, help='Do not back up the file before saving')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.pass_context
def cli(ctx, grammar, backup_path, no_backup, verbose):
    """
    envedit - edit .env files while keeping their layout
    """
    configure_logging(verbose)
    try:
        ctx.obj = EditorConfig.from_env(
            grammar=grammar,
            backup_path=backup_path,
            auto_backup=False if no_backup else None,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc))


@cli.command(name="get-keys")
@filepath_option
@click.pass_context
def get_keys(ctx, filepath):
    """
    List all setters in the .env file.
    """
    with reported_errors():
        editor = open_editor(ctx, filepath)
        keys = editor.get_keys()

    table = Table(title=str(editor.file_path), box=box.ROUNDED)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Use export", style="magenta")
    table.add_column("Value", style="green")
    table.add_column("Comment", style="dim")
    table.add_column("In line", style="yellow", justify="right")

    for key, info in keys.items():
        table.add_row(key, "true" if info.export else "false", Text(info.value), Text(info.comment), str(info.line))

    console.print(table)
    console.print(f"[green]You have total {len(keys)} keys in your file[/green]")


@cli.command(name="set-key")
@click.argument('key')
@click.argument('value', required=False)
@click.argument('comment', required=False)
@filepath_option
@click.option('--restore', '-r', is_flag=True,
              help='Restore the file from a backup first if it does not exist')
@click.option('--restore-path', default=None,
              help='File to restore from (default: latest backup)')
@click.option('--export-key', '-e', is_flag=True, help='Prefix the key with "export "')
@click.pass_context
def set_key(ctx, key, value, comment, filepath, restore, restore_path, export_key):
    """
    Add a new setter or update an existing one.

    COMMENT "false" clears the comment of an existing key.
    """
    console.print("[cyan]Setting key in your file...[/cyan]")

    with reported_errors():
        editor = open_editor(ctx, filepath)
        editor.load(filepath, restore, restore_path)
        editor.set_key(key, value, comment_argument(comment), True if export_key else None)
        editor.save()

    shown_key = escape(f"[{key}]")
    shown_value = escape(f"[{value or ''}]")
    console.print(f"[green]✓ The key {shown_key} is set successfully with value {shown_value}.[/green]")


@cli.command(name="delete-key")
@click.argument('key')
@filepath_option
@click.pass_context
def delete_key(ctx, key, filepath):
    """
    Delete a setter from the .env file.
    """
    with reported_errors():
        editor = open_editor(ctx, filepath)
        if not editor.key_exists(key):
            console.print(f"[yellow]Key '{key}' does not exist[/yellow]")
            return

        console.print("[cyan]Deleting key in your file...[/cyan]")
        editor.delete_key(key)
        editor.save()

    shown_key = escape(f"[{key}]")
    console.print(f"[green]✓ The key {shown_key} is deleted successfully.[/green]")


@cli.command()
@filepath_option
@click.pass_context
def backup(ctx, filepath):
    """
    Back up the .env file.
    """
    console.print("[cyan]Backing up your file...[/cyan]")

    with reported_errors():
        info = open_editor(ctx, filepath).backup()

    shown_path = escape(f"[{info.filepath}]")
    console.print(f"[green]✓ Your file was backed up successfully at path {shown_path}.[/green]")


@cli.command(name="get-backups")
@click.pass_context
def get_backups(ctx):
    """
    List all backups, oldest first.
    """
    config: EditorConfig = ctx.obj
    with reported_errors():
        backups = BackupManager(config.backup_dir).list_backups()

    if not backups:
        console.print(f"[yellow]No backups found in {config.backup_dir}[/yellow]")
        return

    table = Table(title="Backups", box=box.ROUNDED)
    table.add_column("Filename", style="cyan", no_wrap=True)
    table.add_column("Filepath", style="blue")
    table.add_column("Created at", style="green")

    for info in backups:
        table.add_row(info.filename, info.filepath, info.created_at.strftime('%Y-%m-%d %H:%M:%S'))

    console.print(table)
    console.print(f"[green]You have total {len(backups)} backups[/green]")


@cli.command()
@filepath_option
@click.option('--restore-path', default=None,
              help='File to restore from (default: latest backup)')
@click.pass_context
def restore(ctx, filepath, restore_path):
    """
    Restore the .env file from the latest backup or a given file.
    """
    console.print("[cyan]Restoring your file...[/cyan]")

    with reported_errors():
        editor = open_editor(ctx, filepath)
        editor.restore(restore_path)

    console.print("[green]✓ Your file is restored successfully[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
