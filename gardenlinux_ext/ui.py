"""Colorized console output for the gardenlinux-ext CLI.

Thin wrapper around :mod:`rich`.  Status goes to stderr so rendered
cloud-init on stdout can be piped; ``logger.*`` calls are kept for
diagnostic logging.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

# Shared console; force_terminal=None lets Rich decide.
console = Console(stderr=True, force_terminal=None)

# ── Symbols ────────────────────────────────────────────────────────────────

_PASS = "[bold green]✓[/]"
_WARN = "[bold yellow]⚠[/]"


# ── Status lines ───────────────────────────────────────────────────────────


def ok(msg: str) -> None:
    """Green checkmark + message."""
    console.print(f"  {_PASS} {escape(msg)}", soft_wrap=True)


def warn(msg: str) -> None:
    """Yellow warning + message."""
    console.print(f"  {_WARN} [yellow]{escape(msg)}[/]", soft_wrap=True)


def detail(key: str, value: str) -> None:
    """Key-value pair, indented."""
    console.print(f"    [bold]{escape(key)}[/]: {escape(value)}", highlight=False, soft_wrap=True)


def error_msg(msg: str) -> None:
    """Bold red error message (not indented)."""
    console.print(f"[bold red]ERROR:[/] {escape(msg)}", highlight=False, soft_wrap=True)
