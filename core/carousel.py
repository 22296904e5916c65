"""Experience carousel: index navigation over a fixed set of slides.

Each input event kind maps to exactly one transition function.  Transition
functions are pure: given the current index, the slide count and the event
they return the target index, or ``None`` when the event should not be
dispatched.  The controller owns the state, applies accepted targets through
:meth:`CarouselController.go_to` and notifies render listeners with a
:class:`~core.types.CarouselView`.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from .types import CarouselState, CarouselView

T = TypeVar("T")

SWIPE_THRESHOLD = 50

KEY_PREVIOUS = "ArrowLeft"
KEY_NEXT = "ArrowRight"

PREVIOUS = "previous"
NEXT = "next"
INDICATOR = "indicator"
KEY = "key"
SWIPE = "swipe"


@dataclass(frozen=True)
class CarouselEvent:
    kind: str
    index: Optional[int] = None
    key: Optional[str] = None
    start_x: float = 0.0
    end_x: float = 0.0


Transition = Callable[[int, int, CarouselEvent], Optional[int]]
RenderListener = Callable[[CarouselView], None]


def previous_index(index: int, total: int, event: CarouselEvent) -> Optional[int]:
    return index - 1 if index > 0 else None


def next_index(index: int, total: int, event: CarouselEvent) -> Optional[int]:
    return index + 1 if index < total - 1 else None


def indicator_index(index: int, total: int, event: CarouselEvent) -> Optional[int]:
    # go_to rejects out-of-range indicators; the current one re-renders
    return event.index


def key_index(index: int, total: int, event: CarouselEvent) -> Optional[int]:
    if event.key == KEY_PREVIOUS:
        return previous_index(index, total, event)
    if event.key == KEY_NEXT:
        return next_index(index, total, event)
    return None


def swipe_index(
    index: int,
    total: int,
    event: CarouselEvent,
    *,
    threshold: float = SWIPE_THRESHOLD,
) -> Optional[int]:
    """Leftward swipes advance, rightward swipes retreat.

    The displacement must strictly exceed ``threshold``.
    """

    if event.start_x - event.end_x > threshold:
        return next_index(index, total, event)
    if event.end_x - event.start_x > threshold:
        return previous_index(index, total, event)
    return None


def build_transitions(swipe_threshold: float = SWIPE_THRESHOLD) -> Dict[str, Transition]:
    return {
        PREVIOUS: previous_index,
        NEXT: next_index,
        INDICATOR: indicator_index,
        KEY: key_index,
        SWIPE: partial(swipe_index, threshold=swipe_threshold),
    }


def render(index: int, total: int) -> CarouselView:
    return CarouselView(
        offset_percent=-index * 100,
        indicators=tuple(i == index for i in range(total)),
        counter=f"{index + 1} / {total}",
        prev_disabled=index == 0,
        next_disabled=index == total - 1,
    )


class CarouselController(Generic[T]):
    """Owns the active index for one carousel instance."""

    def __init__(self, slides: Sequence[T], *, swipe_threshold: float = SWIPE_THRESHOLD) -> None:
        self.slides: List[T] = list(slides)
        self.state = CarouselState()
        self.view: Optional[CarouselView] = None
        self.initialized = False
        self.swipe_threshold = swipe_threshold
        self._transitions = build_transitions(swipe_threshold)
        self._listeners: List[RenderListener] = []
        self._touch_start_x = 0.0

    @property
    def total(self) -> int:
        return len(self.slides)

    @property
    def active_index(self) -> int:
        return self.state.active_index

    @property
    def current_slide(self) -> Optional[T]:
        if not self.slides:
            return None
        return self.slides[self.state.active_index]

    def subscribe(self, listener: RenderListener) -> None:
        self._listeners.append(listener)
        if self.view is not None:
            listener(self.view)

    def initialize(self) -> bool:
        if not self.slides:
            return False
        self.initialized = True
        self.go_to(0)
        return True

    def go_to(self, index: int) -> bool:
        """Move to ``index``; out-of-range requests are ignored."""

        if not self.initialized or index < 0 or index >= self.total:
            return False
        self.state.active_index = index
        self.view = render(index, self.total)
        for listener in list(self._listeners):
            listener(self.view)
        return True

    def handle(self, event: CarouselEvent) -> bool:
        if not self.initialized:
            return False
        transition = self._transitions.get(event.kind)
        if transition is None:
            raise ValueError(f"Unknown carousel event: {event.kind}")
        target = transition(self.state.active_index, self.total, event)
        if target is None:
            return False
        return self.go_to(target)

    def previous(self) -> bool:
        return self.handle(CarouselEvent(kind=PREVIOUS))

    def next(self) -> bool:
        return self.handle(CarouselEvent(kind=NEXT))

    def select(self, index: int) -> bool:
        return self.handle(CarouselEvent(kind=INDICATOR, index=index))

    def press(self, key: str) -> bool:
        return self.handle(CarouselEvent(kind=KEY, key=key))

    def swipe(self, start_x: float, end_x: float) -> bool:
        return self.handle(CarouselEvent(kind=SWIPE, start_x=start_x, end_x=end_x))

    def touch_start(self, x: float) -> None:
        self._touch_start_x = x

    def touch_end(self, x: float) -> bool:
        return self.swipe(self._touch_start_x, x)
