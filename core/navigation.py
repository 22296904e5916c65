"""Page navigation behaviours: section reveal, anchor scrolling, the mobile
menu and the back-to-top button.

Positions are document coordinates in CSS pixels.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .notifications import monotonic_ms
from .types import ScrollAction, Section


REVEAL_THRESHOLD = 0.1
REVEAL_ROOT_MARGIN_BOTTOM = 50
BACK_TO_TOP_OFFSET = 300
DEBOUNCE_MS = 150
ESCAPE = "Escape"
TOGGLE = "nav-toggle"


class SectionReveal:
    """Marks sections visible the first time enough of them is on screen."""

    def __init__(
        self,
        sections: Sequence[Section],
        *,
        threshold: float = REVEAL_THRESHOLD,
        root_margin_bottom: float = REVEAL_ROOT_MARGIN_BOTTOM,
        observer_available: bool = True,
    ) -> None:
        self.sections = list(sections)
        self.threshold = threshold
        self.root_margin_bottom = root_margin_bottom
        self.observer_available = observer_available
        self.visible: Set[str] = set()
        if not observer_available:
            self.visible = {section.id for section in self.sections}

    def intersection_ratio(self, section: Section, scroll_top: float, viewport_height: float) -> float:
        view_top = scroll_top
        view_bottom = scroll_top + viewport_height - self.root_margin_bottom
        overlap = min(section.top + section.height, view_bottom) - max(section.top, view_top)
        if overlap <= 0:
            return 0.0
        if section.height <= 0:
            return 1.0
        return overlap / section.height

    def observe(self, scroll_top: float, viewport_height: float) -> List[str]:
        """Return the ids revealed by this viewport position."""

        revealed: List[str] = []
        if not self.observer_available:
            return revealed
        for section in self.sections:
            if section.id in self.visible:
                continue
            if self.intersection_ratio(section, scroll_top, viewport_height) >= self.threshold:
                self.visible.add(section.id)
                revealed.append(section.id)
        return revealed

    def is_visible(self, section_id: str) -> bool:
        return section_id in self.visible


class MobileNav:
    def __init__(self, links: Sequence[str] = ()) -> None:
        self.links = list(links)
        self.is_open = False
        self.scroll_locked = False
        self.focused: Optional[str] = None

    @property
    def aria_expanded(self) -> str:
        return "true" if self.is_open else "false"

    def toggle(self) -> bool:
        self.is_open = not self.is_open
        self.scroll_locked = self.is_open
        if self.is_open and self.links:
            self.focused = self.links[0]
        return self.is_open

    def close(self) -> None:
        self.is_open = False
        self.scroll_locked = False

    def click(self, *, inside: bool) -> bool:
        """Handle a document click; returns True when it closed the menu."""

        if inside or not self.is_open:
            return False
        self.close()
        return True

    def key(self, key: str) -> bool:
        if key != ESCAPE or not self.is_open:
            return False
        self.close()
        self.focused = TOGGLE
        return True

    def activate_link(self, href: str) -> None:
        self.close()


class SmoothScroll:
    """Turns same-page anchor clicks into scroll actions below the fixed nav."""

    def __init__(
        self,
        targets: Mapping[str, float],
        *,
        nav: Optional[MobileNav] = None,
        nav_height: float = 0.0,
    ) -> None:
        self.targets = dict(targets)
        self.nav = nav
        self.nav_height = nav_height
        self.history: List[str] = []
        self.focusable: Set[str] = set()

    def click(self, href: str) -> Optional[ScrollAction]:
        if not href or href == "#" or not href.startswith("#"):
            return None
        target_id = href[1:]
        if target_id not in self.targets:
            return None

        if self.nav is not None and self.nav.is_open:
            self.nav.close()

        action = ScrollAction(
            top=self.targets[target_id] - self.nav_height,
            fragment=href,
            focus_target=target_id,
        )
        self.history.append(href)
        self.focusable.add(target_id)
        return action


class Debouncer:
    """Trailing-edge debounce driven by an explicit clock.

    Calls only record the latest arguments; :meth:`poll` runs the wrapped
    function once the quiet period has elapsed.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        delay_ms: float = DEBOUNCE_MS,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.func = func
        self.delay_ms = delay_ms
        self.clock = clock
        self._pending: Optional[Tuple[Any, ...]] = None
        self._due: Optional[float] = None

    def __call__(self, *args: Any) -> None:
        self._pending = args
        self._due = self.clock() + self.delay_ms

    def poll(self, now: Optional[float] = None) -> bool:
        now = self.clock() if now is None else now
        if self._due is None or now < self._due:
            return False
        args = self._pending or ()
        self._pending = None
        self._due = None
        self.func(*args)
        return True


class BackToTop:
    def __init__(
        self,
        *,
        offset: float = BACK_TO_TOP_OFFSET,
        delay_ms: float = DEBOUNCE_MS,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.offset = offset
        self.visible = False
        self._debounced = Debouncer(self._update, delay_ms, clock)

    def on_scroll(self, scroll_y: float) -> None:
        self._debounced(scroll_y)

    def poll(self, now: Optional[float] = None) -> bool:
        return self._debounced.poll(now)

    def _update(self, scroll_y: float) -> None:
        self.visible = scroll_y > self.offset

    def click(self) -> ScrollAction:
        return ScrollAction(top=0)


def section_offsets(sections: Iterable[Section]) -> Dict[str, float]:
    return {section.id: section.top for section in sections}
