import pytest

from core.notifications import FADING, REMOVED, VISIBLE, NotificationPresenter
from core.types import ERROR, SUCCESS, ContactResult


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_banner_lifecycle():
    clock = FakeClock()
    presenter = NotificationPresenter(clock)
    banner = presenter.show("Sent", SUCCESS)

    assert presenter.phase(banner) == VISIBLE
    assert presenter.style(banner).opacity == 1.0

    clock.now = 3000
    assert presenter.phase(banner) == FADING
    style = presenter.style(banner)
    assert style.opacity == 0.0
    assert style.transition == "opacity 0.3s ease"

    clock.now = 3299
    assert presenter.active() == [banner]

    clock.now = 3300
    assert presenter.phase(banner) == REMOVED
    assert presenter.active() == []


def test_concurrent_banners_are_independent():
    clock = FakeClock()
    presenter = NotificationPresenter(clock)
    first = presenter.show("same", ERROR)
    clock.now = 1000
    second = presenter.show("same", ERROR)

    clock.now = 3100
    assert presenter.phase(first) == FADING
    assert presenter.phase(second) == VISIBLE
    assert presenter.counts() == {VISIBLE: 1, FADING: 1}

    clock.now = 3400
    assert presenter.active() == [second]


def test_banner_colors_follow_kind():
    presenter = NotificationPresenter(lambda: 0.0)

    assert presenter.style(presenter.show("ok", SUCCESS)).background == "#27ae60"
    assert presenter.style(presenter.show("no", ERROR)).background == "#e74c3c"


def test_show_result_uses_result_kind():
    presenter = NotificationPresenter(lambda: 0.0)

    banner = presenter.show_result(ContactResult(kind=ERROR, text="Please fill in all required fields"))

    assert banner.kind == ERROR
    assert banner.text == "Please fill in all required fields"
    assert banner.role == "alert"


def test_unknown_kind_rejected():
    presenter = NotificationPresenter(lambda: 0.0)

    with pytest.raises(ValueError):
        presenter.show("hm", "warning")
