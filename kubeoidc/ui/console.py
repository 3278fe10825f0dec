"""Shared Rich console for kubeoidc.

All human-facing output goes to stderr via ``err_console``; stdout is
reserved for the exec credential read by kubectl.
"""

from __future__ import annotations

from rich.console import Console
from rich.theme import Theme

KUBEOIDC_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "heading": "bold cyan",
        "muted": "dim",
        "code": "bold white on dark_blue",
        "url": "underline cyan",
    }
)

err_console = Console(stderr=True, theme=KUBEOIDC_THEME)


def configure_logging(verbose: bool) -> None:
    """Route ``kubeoidc`` log records to stderr through Rich."""
    import logging

    from rich.logging import RichHandler

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    logger = logging.getLogger("kubeoidc")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
