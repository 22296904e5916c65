from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class ContactRequest:
    """A validated contact submission. Fields are already trimmed."""

    name: str
    email: str
    message: str

    def to_payload(self) -> Dict[str, str]:
        return {"name": self.name, "email": self.email, "message": self.message}

    def to_relay_payload(self) -> Dict[str, str]:
        payload = self.to_payload()
        payload["_subject"] = f"Portfolio Contact: {self.name}"
        return payload


@dataclass
class ContactResult:
    """Outcome of one submission attempt."""

    kind: str  # "success" or "error"
    text: str
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == SUCCESS


@dataclass
class Notification:
    text: str
    kind: str
    created_at: float
    role: str = "alert"


@dataclass
class CarouselState:
    active_index: int = 0


@dataclass(frozen=True)
class CarouselView:
    """Everything needed to draw the carousel for one index."""

    offset_percent: int
    indicators: Tuple[bool, ...]
    counter: str
    prev_disabled: bool
    next_disabled: bool

    @property
    def active_indicator(self) -> int:
        return self.indicators.index(True)


@dataclass
class Slide:
    """One experience entry discovered on the page."""

    title: str
    body: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Section:
    id: str
    top: float = 0.0
    height: float = 0.0


@dataclass
class FormField:
    name: str
    value: str = ""
    type: str = "text"
    required: bool = False
    border_color: Optional[str] = None


@dataclass
class SubmitControl:
    label: str = "Send Message"
    disabled: bool = False
    opacity: float = 1.0


@dataclass
class ScrollAction:
    top: float
    behavior: str = "smooth"
    fragment: Optional[str] = None
    focus_target: Optional[str] = None
