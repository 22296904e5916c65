"""Page discovery and per-page component wiring.

``load_page`` reads the static ``index.html`` and extracts the elements the
behaviours hook into.  ``PageSession`` then runs an ordered list of
initializers; each one either builds its component or returns ``None`` when
the page lacks the elements it needs.  Static HTML carries no geometry, so
sections get an estimated stacked layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .carousel import CarouselController
from .contact import ContactForm, ContactSubmitter, ContactTransport, HttpContactTransport
from .navigation import BackToTop, MobileNav, SectionReveal, SmoothScroll, section_offsets
from .notifications import NotificationPresenter, monotonic_ms
from .types import ContactResult, FormField, Section, Slide


NAV_HEIGHT = 70.0
SECTION_HEIGHT = 800.0
DEFAULT_BASE_URL = "http://localhost:3000"

_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}
_HEADINGS = {"h2", "h3", "h4"}


@dataclass
class Page:
    title: str = ""
    sections: List[Section] = field(default_factory=list)
    anchors: List[str] = field(default_factory=list)
    menu_links: List[str] = field(default_factory=list)
    has_nav_toggle: bool = False
    has_nav_menu: bool = False
    has_contact_form: bool = False
    form_action: str = ""
    form_method: str = "get"
    contact_fields: List[FormField] = field(default_factory=list)
    submit_label: str = "Send Message"
    slides: List[Slide] = field(default_factory=list)
    nav_height: float = NAV_HEIGHT

    @property
    def has_nav(self) -> bool:
        return self.has_nav_toggle and self.has_nav_menu


class _PageParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.page = Page()
        self._depth = 0
        self._menu_depth: Optional[int] = None
        self._form_depth: Optional[int] = None
        self._slide_depth: Optional[int] = None
        self._slide: Optional[Slide] = None
        self._text_target: Optional[str] = None
        self._text_depth: Optional[int] = None
        self._buffer: List[str] = []

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)
        classes = (attributes.get("class") or "").split()
        if tag not in _VOID_TAGS:
            self._depth += 1
        depth = self._depth
        page = self.page

        if tag == "title":
            self._capture("title", depth)
        elif tag == "section" and attributes.get("id"):
            page.sections.append(Section(id=attributes["id"]))
        elif tag == "a":
            href = attributes.get("href") or ""
            if href.startswith("#"):
                page.anchors.append(href)
                if self._menu_depth is not None:
                    page.menu_links.append(href)
        elif tag == "form" and attributes.get("id") == "contact-form":
            page.has_contact_form = True
            page.form_action = attributes.get("action") or ""
            page.form_method = (attributes.get("method") or "get").lower()
            self._form_depth = depth
        elif self._form_depth is not None and tag in ("input", "textarea") and attributes.get("name"):
            default_type = "textarea" if tag == "textarea" else "text"
            page.contact_fields.append(
                FormField(
                    name=attributes["name"],
                    type=attributes.get("type") or default_type,
                    required="required" in attributes,
                )
            )
        elif self._form_depth is not None and tag == "button" and attributes.get("type") == "submit":
            self._capture("submit", depth)

        if "nav-toggle" in classes:
            page.has_nav_toggle = True
        if "nav-menu" in classes and tag not in _VOID_TAGS:
            page.has_nav_menu = True
            self._menu_depth = depth

        if "timeline-item" in classes and tag not in _VOID_TAGS:
            self._slide = Slide(title="")
            self._slide_depth = depth
        elif self._slide is not None and self._text_target is None:
            if tag in _HEADINGS and not self._slide.title:
                self._capture("slide_title", depth)
            elif tag == "p":
                self._capture("slide_body", depth)
            elif tag in ("span", "time") and "date" in " ".join(classes):
                self._capture("slide_date", depth)

    def handle_endtag(self, tag):
        if tag in _VOID_TAGS:
            return
        depth = self._depth
        if self._text_target is not None and depth == self._text_depth:
            self._flush()
        if self._slide is not None and depth == self._slide_depth:
            if not self._slide.title:
                self._slide.title = f"Experience {len(self.page.slides) + 1}"
            self.page.slides.append(self._slide)
            self._slide = None
            self._slide_depth = None
        if depth == self._menu_depth:
            self._menu_depth = None
        if depth == self._form_depth:
            self._form_depth = None
        self._depth = max(0, self._depth - 1)

    def handle_data(self, data):
        if self._text_target is not None:
            self._buffer.append(data)

    def _capture(self, target: str, depth: int) -> None:
        self._text_target = target
        self._text_depth = depth
        self._buffer = []

    def _flush(self) -> None:
        text = " ".join("".join(self._buffer).split())
        target = self._text_target
        self._text_target = None
        self._text_depth = None
        self._buffer = []
        if not text:
            return
        if target == "title":
            self.page.title = text
        elif target == "submit":
            self.page.submit_label = text
        elif self._slide is not None:
            if target == "slide_title":
                self._slide.title = text
            elif target == "slide_date":
                self._slide.meta["date"] = text
            else:
                self._slide.body.append(text)


def parse_page(html: str) -> Page:
    parser = _PageParser()
    parser.feed(html)
    parser.close()
    page = parser.page
    for index, section in enumerate(page.sections):
        section.top = page.nav_height + index * SECTION_HEIGHT
        section.height = SECTION_HEIGHT
    return page


def load_page(path: Path) -> Page:
    return parse_page(Path(path).read_text(encoding="utf-8"))


@dataclass
class ContactWidget:
    form: ContactForm
    submitter: ContactSubmitter

    def submit(self) -> Optional[ContactResult]:
        return self.submitter.submit(self.form)


Initializer = Callable[["PageSession"], Optional[object]]


def init_section_reveal(session: "PageSession") -> Optional[SectionReveal]:
    if not session.page.sections:
        return None
    return SectionReveal(session.page.sections, observer_available=session.observer_available)


def init_mobile_nav(session: "PageSession") -> Optional[MobileNav]:
    if not session.page.has_nav:
        return None
    return MobileNav(session.page.menu_links)


def init_smooth_scroll(session: "PageSession") -> Optional[SmoothScroll]:
    page = session.page
    if not page.anchors:
        return None
    return SmoothScroll(
        section_offsets(page.sections),
        nav=session.components.get("mobile_nav"),
        nav_height=page.nav_height,
    )


def init_contact_form(session: "PageSession") -> Optional[ContactWidget]:
    page = session.page
    if not page.has_contact_form:
        return None
    form = ContactForm(page.contact_fields or None, submit_label=page.submit_label)
    transport = session.transport or HttpContactTransport(session.base_url)
    return ContactWidget(form=form, submitter=ContactSubmitter(transport, session.presenter))


def init_back_to_top(session: "PageSession") -> BackToTop:
    return BackToTop(clock=session.clock)


def init_experience_carousel(session: "PageSession") -> Optional[CarouselController[Slide]]:
    controller: CarouselController[Slide] = CarouselController(session.page.slides)
    if not controller.initialize():
        return None
    return controller


# mobile_nav precedes smooth_scroll so anchor clicks can close the menu
DEFAULT_INITIALIZERS: Tuple[Tuple[str, Initializer], ...] = (
    ("section_reveal", init_section_reveal),
    ("mobile_nav", init_mobile_nav),
    ("smooth_scroll", init_smooth_scroll),
    ("contact", init_contact_form),
    ("back_to_top", init_back_to_top),
    ("carousel", init_experience_carousel),
)


class PageSession:
    """Components for one loaded page, built once and owned here."""

    def __init__(
        self,
        page: Page,
        *,
        transport: Optional[ContactTransport] = None,
        base_url: str = DEFAULT_BASE_URL,
        clock: Callable[[], float] = monotonic_ms,
        observer_available: bool = True,
        initializers: Optional[Sequence[Tuple[str, Initializer]]] = None,
    ) -> None:
        self.page = page
        self.transport = transport
        self.base_url = base_url
        self.clock = clock
        self.observer_available = observer_available
        self.presenter = NotificationPresenter(clock)
        self.initializers = list(DEFAULT_INITIALIZERS if initializers is None else initializers)
        self.components: Dict[str, object] = {}
        self.started = False

    def start(self) -> Dict[str, object]:
        if self.started:
            return self.components
        for name, initializer in self.initializers:
            component = initializer(self)
            if component is not None:
                self.components[name] = component
        self.started = True
        return self.components

    @property
    def carousel(self) -> Optional[CarouselController[Slide]]:
        return self.components.get("carousel")  # type: ignore[return-value]

    @property
    def contact(self) -> Optional[ContactWidget]:
        return self.components.get("contact")  # type: ignore[return-value]

    @property
    def mobile_nav(self) -> Optional[MobileNav]:
        return self.components.get("mobile_nav")  # type: ignore[return-value]

    @property
    def smooth_scroll(self) -> Optional[SmoothScroll]:
        return self.components.get("smooth_scroll")  # type: ignore[return-value]

    @property
    def section_reveal(self) -> Optional[SectionReveal]:
        return self.components.get("section_reveal")  # type: ignore[return-value]

    @property
    def back_to_top(self) -> Optional[BackToTop]:
        return self.components.get("back_to_top")  # type: ignore[return-value]
