from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .notifications import NotificationPresenter
from .types import SUCCESS, CarouselView, Slide


ACTIVE_DOT = "●"
INACTIVE_DOT = "○"


def indicator_line(view: CarouselView) -> str:
    return " ".join(ACTIVE_DOT if active else INACTIVE_DOT for active in view.indicators)


class PortfolioTUI:
    """Terminal rendering of the experience carousel and banners."""

    def __init__(self, console: Optional[Console] = None, presenter: Optional[NotificationPresenter] = None) -> None:
        self.console = console or Console()
        self.presenter = presenter
        self.header: Dict[str, str] = {}
        self.view: Optional[CarouselView] = None
        self.slide: Optional[Slide] = None
        self.footer: Optional[str] = None
        self._live: Optional[Live] = None

    @contextmanager
    def live(self):
        # the renderable is rebuilt on every tick so expired banners drop off
        with Live(console=self.console, get_renderable=self._render, refresh_per_second=8, transient=False) as live:
            self._live = live
            try:
                yield self
            finally:
                self._live = None

    def set_header(self, **fields: str) -> None:
        self.header.update({k: str(v) for k, v in fields.items() if v is not None})
        self._refresh()

    def show_slide(self, view: CarouselView, slide: Optional[Slide]) -> None:
        self.view = view
        self.slide = slide
        self._refresh()

    def set_footer(self, text: str) -> None:
        self.footer = text
        self._refresh()

    def refresh(self) -> None:
        self._refresh()

    def _refresh(self) -> None:
        if self._live:
            self._live.refresh()

    def _render_slide(self) -> Panel:
        body = Table.grid(padding=0)
        if self.slide is None:
            body.add_row(Text("No experience entries found.", style="dim"))
            return Panel(body, title="Experience")
        date = self.slide.meta.get("date")
        if date:
            body.add_row(Text(date, style="dim"))
        for line in self.slide.body:
            body.add_row(line)
        return Panel(body, title=self.slide.title)

    def _render_controls(self) -> Table:
        controls = Table.grid(expand=True)
        if self.view is None:
            return controls
        prev_label = "[dim]‹ prev[/]" if self.view.prev_disabled else "‹ prev"
        next_label = "[dim]next ›[/]" if self.view.next_disabled else "next ›"
        controls.add_row(prev_label, indicator_line(self.view), next_label, self.view.counter)
        return controls

    def _render_banners(self) -> List[Panel]:
        if self.presenter is None:
            return []
        banners: List[Panel] = []
        for notification in self.presenter.active():
            style = "green" if notification.kind == SUCCESS else "red"
            banners.append(Panel(Text(notification.text), border_style=style))
        return banners

    def _render(self):
        header_table = Table.grid(expand=True)
        for key, value in self.header.items():
            header_table.add_row(f"[bold]{key}[/]: {value}")

        items: List = [Panel(header_table, title="Portfolio"), self._render_slide(), self._render_controls()]
        items.extend(self._render_banners())
        if self.footer:
            items.append(Text(self.footer, style="dim"))
        return Group(*items)
