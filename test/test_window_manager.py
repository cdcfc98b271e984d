import pytest

from tam.domain.errors import NotFoundError
from tam.windowing import DRAG_MARGIN, Geometry, Viewport, WindowManager


def _wm(width: int = 1280, height: int = 800) -> WindowManager:
    return WindowManager(viewport=Viewport(width, height))


def test_open_cascades_and_stacks_new_windows_on_top():
    wm = _wm()

    first = wm.open("bookings")
    second = wm.open("reports")

    assert (first.x, first.y, first.width, first.height) == (40, 40, 800, 600)
    assert (second.x, second.y) == (70, 70)
    assert second.z_index > first.z_index
    assert wm.open_windows() == ["bookings", "reports"]


def test_opening_an_open_window_is_a_no_op():
    wm = _wm()
    state = wm.open("bookings")
    wm.open("reports")
    z_before = state.z_index

    again = wm.open("bookings")

    assert again is state
    assert again.z_index == z_before
    assert wm.top().id == "reports"


def test_default_size_shrinks_to_small_viewport():
    wm = _wm(600, 400)

    state = wm.open("bookings")

    assert (state.x, state.y, state.width, state.height) == (0, 0, 600, 400)


def test_bring_to_front_only_touches_the_focused_window():
    wm = _wm()
    a = wm.open("a")
    b = wm.open("b")
    c = wm.open("c")
    b_z, c_z = b.z_index, c.z_index

    first = wm.bring_to_front("a").z_index
    second = wm.bring_to_front("a").z_index

    assert c_z < first < second
    assert (b.z_index, c.z_index) == (b_z, c_z)
    assert len({w.z_index for w in (a, b, c)}) == 3
    assert [w.id for w in wm.visible()] == ["b", "c", "a"]


def test_drag_moves_by_pointer_delta():
    wm = _wm()
    wm.open("a")

    assert wm.begin_drag("a", 100, 100) is True
    state = wm.drag_to(150, 130)

    assert (state.x, state.y) == (90, 70)
    assert wm.end_drag() is state
    assert wm.active_drag is None


def test_drag_is_clamped_to_viewport_margin():
    wm = _wm(1000, 700)
    wm.open("a")
    wm.begin_drag("a", 0, 0)

    far = wm.drag_to(5000, 5000)
    assert (far.x, far.y) == (1000 - DRAG_MARGIN, 700 - DRAG_MARGIN)

    off = wm.drag_to(-5000, -5000)
    assert (off.x, off.y) == (0, 0)


def test_only_one_drag_at_a_time():
    wm = _wm()
    wm.open("a")
    wm.open("b")

    assert wm.begin_drag("a", 0, 0) is True
    assert wm.begin_drag("b", 0, 0) is False
    assert wm.active_drag.window_id == "a"

    wm.end_drag()
    assert wm.begin_drag("b", 0, 0) is True


def test_begin_drag_focuses_the_window():
    wm = _wm()
    wm.open("a")
    wm.open("b")

    wm.begin_drag("a", 0, 0)

    assert wm.top().id == "a"


def test_maximized_and_minimized_windows_cannot_be_dragged():
    wm = _wm()
    wm.open("a")
    wm.open("b")
    wm.toggle_maximize("a")
    wm.minimize("b")

    assert wm.begin_drag("a", 0, 0) is False
    assert wm.begin_drag("b", 0, 0) is False
    assert wm.drag_to(10, 10) is None
    assert wm.end_drag() is None


def test_maximize_restores_exact_previous_geometry():
    wm = _wm(1000, 700)
    wm.open("a")
    wm.begin_drag("a", 0, 0)
    wm.drag_to(123, 77)
    wm.end_drag()
    before = wm.get("a").geometry

    maxed = wm.toggle_maximize("a")
    assert maxed.maximized
    assert maxed.geometry == Geometry(0, 0, 1000, 700)
    assert maxed.restore_geometry == before

    restored = wm.toggle_maximize("a")
    assert not restored.maximized
    assert restored.geometry == before
    assert restored.restore_geometry is None


def test_minimize_moves_window_to_taskbar_and_restore_brings_it_back_on_top():
    wm = _wm()
    wm.open("a")
    wm.open("b")

    wm.minimize("b")
    assert [w.id for w in wm.taskbar()] == ["b"]
    assert [w.id for w in wm.visible()] == ["a"]

    wm.restore("b")
    assert wm.taskbar() == []
    assert wm.top().id == "b"


def test_close_discards_state_and_reopen_starts_fresh():
    wm = _wm()
    wm.open("a")
    wm.begin_drag("a", 0, 0)
    wm.drag_to(300, 200)

    wm.close("a")

    assert wm.active_drag is None
    assert not wm.is_open("a")
    with pytest.raises(NotFoundError):
        wm.get("a")

    reopened = wm.open("a")
    assert (reopened.x, reopened.y) == (40, 40)
    assert not reopened.maximized and not reopened.minimized

    wm.close("never-opened")


def test_transitions_on_unknown_window_raise():
    wm = _wm()
    for op in (wm.minimize, wm.restore, wm.toggle_maximize, wm.bring_to_front):
        with pytest.raises(NotFoundError):
            op("ghost")
    assert wm.begin_drag("ghost", 0, 0) is False


def test_set_viewport_refits_maximized_and_reclamps_others():
    wm = _wm(1280, 800)
    wm.open("a")
    wm.open("b")
    wm.begin_drag("b", 0, 0)
    wm.drag_to(1000, 600)
    wm.end_drag()
    wm.toggle_maximize("a")

    wm.set_viewport(800, 500)

    assert wm.get("a").geometry == Geometry(0, 0, 800, 500)
    b = wm.get("b")
    assert (b.x, b.y) == (800 - DRAG_MARGIN, 500 - DRAG_MARGIN)


def test_unmaximize_after_shrink_stays_on_screen():
    wm = _wm(1280, 800)
    wm.open("a")
    wm.begin_drag("a", 0, 0)
    wm.drag_to(1100, 700)
    wm.end_drag()
    assert (wm.get("a").x, wm.get("a").y) == (1140, 740)
    wm.toggle_maximize("a")

    wm.set_viewport(600, 400)
    restored = wm.toggle_maximize("a")

    assert (restored.x, restored.y) == (600 - DRAG_MARGIN, 400 - DRAG_MARGIN)
    assert (restored.width, restored.height) == (800, 600)
