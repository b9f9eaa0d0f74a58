#!/usr/bin/env python3
"""
FsBridge - filesystem bridging utilities

Main entry point for the FsBridge CLI application.
"""

import codecs
import functools
import re

import click
from rich.console import Console
from rich.table import Table

from core import AuditLogger, BridgeConfig, ShellBridge
from core.errors import FsBridgeError
from modules.fs_bridge import (
    ArchiveExtractor,
    AtomicReplacer,
    LocalFilesystem,
    Permission,
    PermissionCapabilities,
    PermissionSetter,
    TreeCopier,
    TreeDeleter,
    disk_usage,
    sym_link,
)


console = Console()

OCTAL_MODE = re.compile(r"^[0-7]{3,4}$")


def get_config(ctx: click.Context) -> BridgeConfig:
    return ctx.obj["config"]


def get_logger(ctx: click.Context) -> AuditLogger:
    """Get the audit logger configured for this invocation."""
    return AuditLogger(log_path=get_config(ctx).audit_log_path)


def reports_errors(func):
    """Print FsBridge errors in red and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FsBridgeError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
    return wrapper


@click.group()
@click.version_option(version="0.1.0", prog_name="FsBridge")
@click.option("--config", "config_path", default="config.yaml", show_default=True,
              help="YAML configuration file.")
@click.pass_context
def fsbridge(ctx, config_path):
    """
    FsBridge - copy, delete, unpack and chmod file trees.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = BridgeConfig.load(config_path)


@fsbridge.command()
@click.argument("sources", nargs=-1, required=True)
@click.argument("destination")
@click.option("--move", is_flag=True, help="Delete the sources after copying.")
@click.option("--no-overwrite", is_flag=True, help="Refuse to replace existing files.")
@click.pass_context
@reports_errors
def copy(ctx, sources, destination, move, no_overwrite):
    """Copy files or directory trees to DESTINATION."""
    config = get_config(ctx)
    copier = TreeCopier(logger=get_logger(ctx), buffer_size=config.buffer_size)
    fs = LocalFilesystem()

    ok = copier.copy_all(fs, list(sources), fs, destination,
                         delete_source=move, overwrite=not no_overwrite)
    if ok:
        console.print(f"[green]{'Moved' if move else 'Copied'}[/green] {len(sources)} item(s) to {destination}")
    else:
        console.print(f"[yellow]Finished with failures[/yellow] copying to {destination}")
        raise SystemExit(1)


@fsbridge.command()
@click.argument("src_dir")
@click.argument("dst_file")
@click.option("--separator", default=None, help="Text written after each file.")
@click.option("--delete-source", is_flag=True, help="Delete SRC_DIR afterwards.")
@click.pass_context
@reports_errors
def merge(ctx, src_dir, dst_file, separator, delete_source):
    """Concatenate the files in SRC_DIR into DST_FILE."""
    config = get_config(ctx)
    copier = TreeCopier(logger=get_logger(ctx), buffer_size=config.buffer_size)
    fs = LocalFilesystem()

    if separator is not None:
        separator = codecs.decode(separator.encode("latin-1", "backslashreplace"), "unicode_escape")
    if copier.copy_merge(fs, src_dir, fs, dst_file, delete_source, separator):
        console.print(f"[green]Merged[/green] {src_dir} into {dst_file}")
    else:
        console.print(f"[red]Not merged:[/red] {src_dir} is not a directory")
        raise SystemExit(1)


@fsbridge.command()
@click.argument("path")
@click.pass_context
@reports_errors
def rm(ctx, path):
    """Delete PATH and everything beneath it."""
    deleter = TreeDeleter(logger=get_logger(ctx))
    if deleter.delete_tree(path):
        console.print(f"[green]Deleted[/green] {path}")
    else:
        console.print(f"[yellow]Some entries under {path} could not be deleted[/yellow]")
        raise SystemExit(1)


@fsbridge.command()
@click.argument("mode")
@click.argument("path")
@click.option("-R", "--recursive", is_flag=True, help="Apply to the whole tree.")
@click.pass_context
def chmod(ctx, mode, path, recursive):
    """
    Change the permission bits of PATH.

    A plain octal MODE goes through the configured permission strategy;
    symbolic or recursive modes run the chmod command.
    """
    logger = get_logger(ctx)
    native = get_config(ctx).native_chmod_enabled()
    setter = PermissionSetter(
        capabilities=PermissionCapabilities.probe(native),
        shell=ShellBridge(logger=logger),
        logger=logger,
    )

    if OCTAL_MODE.match(mode) and not recursive:
        try:
            setter.set_permission(path, Permission.from_octal(mode))
        except OSError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
    else:
        exit_code = setter.chmod(path, mode, recursive=recursive)
        if exit_code != 0:
            console.print(f"[red]chmod exited with {exit_code}[/red]")
            raise SystemExit(exit_code)
    console.print(f"[green]Changed[/green] {path} to {mode}")


@fsbridge.command()
@click.argument("archive")
@click.argument("destination")
@click.pass_context
@reports_errors
def unpack(ctx, archive, destination):
    """Extract a zip or tar(.gz) ARCHIVE into DESTINATION."""
    logger = get_logger(ctx)
    extractor = ArchiveExtractor(shell=ShellBridge(logger=logger), logger=logger)
    extractor.extract(archive, destination)
    console.print(f"[green]Extracted[/green] {archive} into {destination}")


@fsbridge.command()
@click.argument("src")
@click.argument("target")
@click.pass_context
@reports_errors
def replace(ctx, src, target):
    """Rename SRC onto TARGET, retrying while TARGET is held."""
    config = get_config(ctx)
    replacer = AtomicReplacer(
        retries=config.replace_retries,
        delay=config.replace_delay,
        logger=get_logger(ctx),
    )
    replacer.replace(src, target)
    console.print(f"[green]Replaced[/green] {target}")


@fsbridge.command()
@click.argument("path")
def du(path):
    """Show the bytes used under PATH."""
    console.print(f"{disk_usage(path)}\t{path}")


@fsbridge.command()
@click.argument("target")
@click.argument("linkname")
@click.pass_context
def ln(ctx, target, linkname):
    """Create a symbolic link LINKNAME pointing at TARGET."""
    logger = get_logger(ctx)
    exit_code = sym_link(target, linkname, shell=ShellBridge(logger=logger), logger=logger)
    if exit_code != 0:
        console.print(f"[red]ln exited with {exit_code}[/red]")
        raise SystemExit(exit_code)


@fsbridge.command()
@click.option("--failed", is_flag=True, help="Only show failed actions.")
@click.option("--export", "export_format", type=click.Choice(["json", "csv"]),
              help="Print the whole log in this format.")
@click.pass_context
def audit(ctx, failed, export_format):
    """View the audit log."""
    logger = get_logger(ctx)

    if export_format:
        click.echo(logger.export(export_format))
        return

    entries = logger.get_failed_actions(limit=20) if failed else logger.get_recent(limit=20)

    if not entries:
        console.print("[dim]No audit entries found.[/dim]")
        return

    table = Table(title="Recent Audit Log")
    table.add_column("Time", style="dim")
    table.add_column("Type")
    table.add_column("Action")
    table.add_column("Status")

    for entry in entries:
        # Format timestamp
        time_str = entry.timestamp.split("T")[1].split(".")[0] if "T" in entry.timestamp else entry.timestamp

        # Status color
        status_str = entry.status
        if entry.status == "executed":
            status_str = f"[green]{entry.status}[/green]"
        elif entry.status == "failed":
            status_str = f"[red]{entry.status}[/red]"

        table.add_row(
            time_str,
            entry.action_type,
            entry.action_description[:50] + "..." if len(entry.action_description) > 50 else entry.action_description,
            status_str,
        )

    console.print(table)


if __name__ == "__main__":
    fsbridge()
