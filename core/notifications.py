from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .types import ERROR, SUCCESS, ContactResult, Notification


DISPLAY_MS = 3000
FADE_MS = 300

VISIBLE = "visible"
FADING = "fading"
REMOVED = "removed"

BANNER_COLORS = {SUCCESS: "#27ae60", ERROR: "#e74c3c"}


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class BannerStyle:
    background: str
    opacity: float
    transition: Optional[str] = None


class NotificationPresenter:
    """Creates auto-dismissing banners.

    Every :meth:`show` call produces its own banner; nothing is merged or
    queued.  Banners stay visible for ``display_ms``, fade for ``fade_ms``
    and are then dropped from :meth:`active`.
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_ms,
        *,
        display_ms: float = DISPLAY_MS,
        fade_ms: float = FADE_MS,
    ) -> None:
        self.clock = clock
        self.display_ms = display_ms
        self.fade_ms = fade_ms
        self._banners: List[Notification] = []

    def show(self, message: str, kind: str = SUCCESS) -> Notification:
        if kind not in BANNER_COLORS:
            raise ValueError(f"Unknown notification kind: {kind}")
        notification = Notification(text=message, kind=kind, created_at=self.clock())
        self._banners.append(notification)
        return notification

    def show_result(self, result: ContactResult) -> Notification:
        return self.show(result.text, result.kind)

    def phase(self, notification: Notification, now: Optional[float] = None) -> str:
        now = self.clock() if now is None else now
        elapsed = now - notification.created_at
        if elapsed < self.display_ms:
            return VISIBLE
        if elapsed < self.display_ms + self.fade_ms:
            return FADING
        return REMOVED

    def style(self, notification: Notification, now: Optional[float] = None) -> BannerStyle:
        background = BANNER_COLORS[notification.kind]
        if self.phase(notification, now) == VISIBLE:
            return BannerStyle(background=background, opacity=1.0)
        return BannerStyle(background=background, opacity=0.0, transition="opacity 0.3s ease")

    def active(self, now: Optional[float] = None) -> List[Notification]:
        now = self.clock() if now is None else now
        self._banners = [item for item in self._banners if self.phase(item, now) != REMOVED]
        return list(self._banners)

    def counts(self, now: Optional[float] = None) -> Dict[str, int]:
        now = self.clock() if now is None else now
        summary = {VISIBLE: 0, FADING: 0}
        for item in self.active(now):
            summary[self.phase(item, now)] += 1
        return summary
