"""Portfolio command line interface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
import typer
from dotenv import load_dotenv
from rich.console import Console

# Load environment variables from .env file
load_dotenv()

from backend.app import create_app
from core.carousel import KEY_NEXT, KEY_PREVIOUS, CarouselController
from core.config import DEFAULT_PORT, STATIC_DIR, load_settings
from core.config_store import last_server_url, remember_server
from core.contact import DEFAULT_TIMEOUT, ContactForm, ContactSubmitter, HttpContactTransport
from core.errors import ConfigError
from core.logs import configure_logging
from core.notifications import NotificationPresenter
from core.page import PageSession, load_page
from core.runtime import GracefulServer, install_fatal_handlers, probe_health, wait_for_server
from core.tui import PortfolioTUI
from core.types import SUCCESS

console = Console()

KEY_BINDINGS = {
    "\x1b[D": KEY_PREVIOUS,
    "\x1b[C": KEY_NEXT,
    "\xe0K": KEY_PREVIOUS,
    "\xe0M": KEY_NEXT,
    "h": KEY_PREVIOUS,
    "l": KEY_NEXT,
}
QUIT_KEYS = {"q", "Q", "\x1b", "\x03"}


def _resolve_url(url: Optional[str]) -> str:
    if url:
        return url.rstrip("/")
    stored = last_server_url(Path.cwd())
    if stored:
        return stored
    return f"http://localhost:{DEFAULT_PORT}"


def _dispatch_key(carousel: CarouselController, key: str) -> bool:
    """Apply one keypress to the carousel; False means quit."""

    if key in QUIT_KEYS:
        return False
    if key.isdigit() and key != "0":
        carousel.select(int(key) - 1)
    elif key in KEY_BINDINGS:
        carousel.press(KEY_BINDINGS[key])
    return True


main = typer.Typer(help="Serve and exercise the portfolio site.")


@main.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: $HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", help="Listen port (default: $PORT or 3000)"),
    env: Optional[str] = typer.Option(None, "--env", help="development | production"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    detailed_log: bool = typer.Option(False, "--detailed-log", help="Print tracebacks for unexpected errors"),
) -> None:
    """Run the web server until SIGTERM/SIGINT."""

    try:
        settings = load_settings(host=host, port=port, env=env)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    configure_logging(dev=settings.is_dev, verbose=verbose)
    install_fatal_handlers()

    try:
        server = GracefulServer(create_app(settings), settings)
    except OSError as exc:
        console.print(f"[red]Could not listen on {settings.host}:{settings.port}: {exc}[/red]")
        raise typer.Exit(1)

    console.print(f"Server running on {server.url}")
    console.print(f"Serving static files from: {settings.static_dir}")
    console.print(f"Environment: {settings.env}")
    remember_server(Path.cwd(), server.url, settings.env)

    try:
        code = server.run()
    except Exception as exc:  # pragma: no cover - unexpected failure
        if detailed_log:
            console.print_exception()
        else:
            console.print(f"[red]Unexpected error: {exc}[/red]")
            console.print("[red]Re-run with --detailed-log to view the full traceback.[/red]")
        raise typer.Exit(1)
    raise typer.Exit(code)


@main.command()
def health(
    url: Optional[str] = typer.Option(None, "--url", help="Server base URL"),
    wait: float = typer.Option(0.0, "--wait", min=0.0, help="Seconds to keep retrying"),
) -> None:
    """Check the server's /health endpoint."""

    base_url = _resolve_url(url)
    probe = wait_for_server(base_url, timeout=wait) if wait > 0 else probe_health(base_url)

    if probe.healthy:
        console.print(f"[green]ok[/green] {probe.url} ({probe.timestamp})")
        raise typer.Exit(0)
    if probe.error:
        console.print(f"[red]Unreachable: {probe.url}[/red]")
        console.print(probe.error)
    else:
        console.print(f"[red]Unhealthy: {probe.url} returned {probe.status_code}[/red]")
    raise typer.Exit(1)


@main.command()
def contact(
    name: str = typer.Option("", "--name", help="Sender name"),
    email: str = typer.Option("", "--email", help="Sender email"),
    message: str = typer.Option("", "--message", help="Message body"),
    url: Optional[str] = typer.Option(None, "--url", help="Server base URL"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", min=0.1, help="Request timeout in seconds"),
) -> None:
    """Submit the contact form against a running server."""

    base_url = _resolve_url(url)
    form = ContactForm()
    form.fill(name=name, email=email, message=message)
    submitter = ContactSubmitter(HttpContactTransport(base_url, timeout=timeout), NotificationPresenter())

    with console.status(form.submit.label + "…", spinner="dots"):
        result = submitter.submit(form)

    if result is None:  # pragma: no cover - one form, one attempt
        raise typer.Exit(1)
    style = "green" if result.kind == SUCCESS else "red"
    console.print(f"[{style}]{result.text}[/{style}]")
    raise typer.Exit(0 if result.ok else 1)


@main.command()
def preview(
    page: Path = typer.Option(STATIC_DIR / "index.html", "--page", help="HTML page to load"),
    url: Optional[str] = typer.Option(None, "--url", help="Server base URL for the contact form"),
) -> None:
    """Browse the experience carousel in the terminal."""

    if not page.exists():
        console.print(f"[red]Page not found: {page}[/red]")
        raise typer.Exit(1)

    session = PageSession(load_page(page), base_url=_resolve_url(url))
    session.start()
    carousel = session.carousel
    if carousel is None:
        console.print("No experience entries found on the page.")
        raise typer.Exit(0)

    tui = PortfolioTUI(console=console, presenter=session.presenter)
    tui.set_header(Page=session.page.title or page.name, Sections=str(len(session.page.sections)))
    tui.set_footer("←/→ or h/l to navigate, 1-9 to jump, q to quit")
    carousel.subscribe(lambda view: tui.show_slide(view, carousel.current_slide))

    with tui.live():
        while _dispatch_key(carousel, click.getchar()):
            pass


if __name__ == "__main__":
    main()
