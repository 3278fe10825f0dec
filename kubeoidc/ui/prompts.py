"""Prompt primitives used by the interactive grant flows.

Every function accepts an optional *console* (for output) and *input_stream*
(for deterministic test input) so that tests never need to monkeypatch stdin.
"""

from __future__ import annotations

from typing import TextIO

from rich.console import Console
from rich.markup import escape

from kubeoidc.ui.console import err_console


def prompt_text(
    prompt: str,
    *,
    console: Console | None = None,
    input_stream: TextIO | None = None,
) -> str:
    """Ask for a single line of text.

    Raises ``KeyboardInterrupt`` on EOF.
    """
    con = console or err_console
    if input_stream is None:
        return con.input(f"{prompt}: ").strip()
    con.print(f"{prompt}: ", end="")
    line = input_stream.readline()
    if not line:
        raise KeyboardInterrupt
    return line.strip()


def prompt_secret(
    prompt: str,
    *,
    console: Console | None = None,
    input_stream: TextIO | None = None,
) -> str:
    """Ask for a secret without echoing it (when reading from a terminal)."""
    con = console or err_console
    if input_stream is None:
        return con.input(f"{prompt}: ", password=True)
    con.print(f"{prompt}: ", end="")
    line = input_stream.readline()
    if not line:
        raise KeyboardInterrupt
    return line.rstrip("\n")


def show_device_code(
    verification_uri: str,
    user_code: str,
    *,
    console: Console | None = None,
) -> None:
    """Tell the user where to enter the device code."""
    con = console or err_console
    con.print()
    con.print("[heading]Complete the login in your browser:[/heading]")
    con.print(f"  Open [url]{escape(verification_uri)}[/url]", soft_wrap=True)
    con.print(f"  Enter the code [code] {user_code} [/code]")
    con.print()


def show_browser_url(url: str, *, opened: bool, console: Console | None = None) -> None:
    """Show the authorization URL, noting whether a browser was opened."""
    con = console or err_console
    if opened:
        con.print(
            "[muted]Opened the browser for login. If it did not open, visit:[/muted] "
            + escape(url),
            soft_wrap=True,
        )
    else:
        con.print(
            "Please visit the following URL in your browser: " + escape(url), soft_wrap=True
        )
