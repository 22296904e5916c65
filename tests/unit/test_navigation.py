from core.navigation import TOGGLE, BackToTop, Debouncer, MobileNav, SectionReveal, SmoothScroll
from core.types import Section


def make_sections():
    return [
        Section(id="home", top=0, height=800),
        Section(id="about", top=800, height=800),
        Section(id="contact", top=1600, height=800),
    ]


def test_reveal_requires_threshold_fraction():
    reveal = SectionReveal(make_sections())

    # viewport 0..900 shrinks to 0..850: about shows 50/800 < 0.1
    assert reveal.observe(0, 900) == ["home"]
    assert not reveal.is_visible("about")

    # viewport 0..930 shrinks to 0..880: about shows 80/800 == 0.1
    assert reveal.observe(0, 930) == ["about"]


def test_reveal_is_one_way():
    reveal = SectionReveal(make_sections())
    reveal.observe(1600, 900)

    assert reveal.observe(0, 900) == ["home"]
    assert reveal.visible == {"home", "contact"}
    assert reveal.observe(1600, 900) == []
    assert reveal.is_visible("contact")


def test_reveal_without_observer_shows_everything():
    reveal = SectionReveal(make_sections(), observer_available=False)

    assert reveal.visible == {"home", "about", "contact"}
    assert reveal.observe(0, 10) == []


def test_mobile_nav_toggle_locks_scroll():
    nav = MobileNav(["#about", "#contact"])

    assert nav.toggle() is True
    assert nav.aria_expanded == "true"
    assert nav.scroll_locked
    assert nav.focused == "#about"

    assert nav.toggle() is False
    assert nav.aria_expanded == "false"
    assert not nav.scroll_locked


def test_mobile_nav_outside_click_and_escape():
    nav = MobileNav(["#about"])
    nav.toggle()

    assert nav.click(inside=True) is False
    assert nav.is_open
    assert nav.click(inside=False) is True
    assert not nav.is_open

    nav.toggle()
    assert nav.key("Enter") is False
    assert nav.key("Escape") is True
    assert not nav.is_open
    assert nav.focused == TOGGLE
    assert nav.key("Escape") is False


def test_mobile_nav_link_closes_menu():
    nav = MobileNav(["#about"])
    nav.toggle()

    nav.activate_link("#about")

    assert not nav.is_open
    assert nav.aria_expanded == "false"
    assert not nav.scroll_locked


def test_smooth_scroll_offsets_by_nav_height():
    nav = MobileNav(["#about"])
    nav.toggle()
    scroll = SmoothScroll({"about": 870.0}, nav=nav, nav_height=70)

    action = scroll.click("#about")

    assert action.top == 800.0
    assert action.behavior == "smooth"
    assert action.fragment == "#about"
    assert action.focus_target == "about"
    assert not nav.is_open
    assert scroll.history == ["#about"]
    assert "about" in scroll.focusable


def test_smooth_scroll_ignores_bare_hash_and_missing_targets():
    scroll = SmoothScroll({"about": 100.0})

    assert scroll.click("#") is None
    assert scroll.click("") is None
    assert scroll.click("#missing") is None
    assert scroll.click("/elsewhere") is None
    assert scroll.history == []


def test_debouncer_runs_latest_call_after_quiet_period():
    now = [0.0]
    calls = []
    debounced = Debouncer(calls.append, delay_ms=150, clock=lambda: now[0])

    debounced(1)
    now[0] = 100
    debounced(2)
    now[0] = 200
    assert debounced.poll() is False
    now[0] = 250
    assert debounced.poll() is True
    assert calls == [2]
    assert debounced.poll() is False


def test_back_to_top_visibility():
    now = [0.0]
    button = BackToTop(clock=lambda: now[0])

    button.on_scroll(301)
    assert button.visible is False
    now[0] = 150
    button.poll()
    assert button.visible is True

    button.on_scroll(300)
    button.poll(now[0] + 150)
    assert button.visible is False
    assert button.click().top == 0
