from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional

from tam.domain.errors import NotFoundError

log = logging.getLogger(__name__)

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
CASCADE_ORIGIN = 40
CASCADE_OFFSET = 30
CASCADE_STEPS = 10
DRAG_MARGIN = 40


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int


@dataclass(frozen=True)
class Geometry:
    x: int
    y: int
    width: int
    height: int


@dataclass
class WindowState:
    id: str
    x: int
    y: int
    width: int
    height: int
    z_index: int = 0
    minimized: bool = False
    maximized: bool = False
    restore_geometry: Optional[Geometry] = None

    @property
    def geometry(self) -> Geometry:
        return Geometry(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class DragSession:
    """Capture token for the one window being dragged."""

    window_id: str
    pointer_x: int
    pointer_y: int
    origin_x: int
    origin_y: int


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass
class WindowManager:
    """Geometry, stacking and minimize/maximize state of the desktop windows.

    Pure model: the tkinter desktop reads ``visible()`` and ``taskbar()`` to
    draw itself and forwards pointer events to the drag methods. Closing a
    window forgets everything about it, so reopening starts from a fresh
    cascaded position.
    """

    viewport: Viewport = field(default_factory=lambda: Viewport(1280, 800))
    margin: int = DRAG_MARGIN
    _windows: dict[str, WindowState] = field(default_factory=dict)
    _z_counter: int = 0
    _drag: Optional[DragSession] = None

    # ---------- registry ----------
    def is_open(self, window_id: str) -> bool:
        return window_id in self._windows

    def open_windows(self) -> list[str]:
        return list(self._windows)

    def get(self, window_id: str) -> WindowState:
        try:
            return self._windows[window_id]
        except KeyError:
            raise NotFoundError(f"Window '{window_id}' is not open.") from None

    def open(self, window_id: str) -> WindowState:
        existing = self._windows.get(window_id)
        if existing is not None:
            return existing

        width = min(DEFAULT_WIDTH, self.viewport.width)
        height = min(DEFAULT_HEIGHT, self.viewport.height)
        step = (len(self._windows) % CASCADE_STEPS) * CASCADE_OFFSET
        x = _clamp(CASCADE_ORIGIN + step, 0, max(0, self.viewport.width - width))
        y = _clamp(CASCADE_ORIGIN + step, 0, max(0, self.viewport.height - height))

        state = WindowState(id=window_id, x=x, y=y, width=width, height=height)
        self._windows[window_id] = state
        self.bring_to_front(window_id)
        log.debug("window_opened id=%s x=%s y=%s z=%s", window_id, x, y, state.z_index)
        return state

    def close(self, window_id: str) -> None:
        if self._drag is not None and self._drag.window_id == window_id:
            self._drag = None
        if self._windows.pop(window_id, None) is not None:
            log.debug("window_closed id=%s", window_id)

    # ---------- state transitions ----------
    def minimize(self, window_id: str) -> WindowState:
        state = self.get(window_id)
        if self._drag is not None and self._drag.window_id == window_id:
            self._drag = None
        state.minimized = True
        return state

    def restore(self, window_id: str) -> WindowState:
        state = self.get(window_id)
        state.minimized = False
        self.bring_to_front(window_id)
        return state

    def toggle_maximize(self, window_id: str) -> WindowState:
        state = self.get(window_id)
        if state.maximized:
            snap = state.restore_geometry
            if snap is not None:
                state.width, state.height = snap.width, snap.height
                state.x = _clamp(snap.x, 0, self._max_x())
                state.y = _clamp(snap.y, 0, self._max_y())
            state.maximized = False
            state.restore_geometry = None
        else:
            state.restore_geometry = state.geometry
            state.x, state.y = 0, 0
            state.width, state.height = self.viewport.width, self.viewport.height
            state.maximized = True
        return state

    def bring_to_front(self, window_id: str) -> WindowState:
        state = self.get(window_id)
        self._z_counter += 1
        state.z_index = self._z_counter
        return state

    def set_viewport(self, width: int, height: int) -> None:
        self.viewport = Viewport(max(0, int(width)), max(0, int(height)))
        for state in self._windows.values():
            if state.maximized:
                state.width, state.height = self.viewport.width, self.viewport.height
            else:
                state.x = _clamp(state.x, 0, self._max_x())
                state.y = _clamp(state.y, 0, self._max_y())

    # ---------- views ----------
    def visible(self) -> list[WindowState]:
        """Non-minimized windows, bottom of the stack first."""
        return sorted((w for w in self._windows.values() if not w.minimized), key=lambda w: w.z_index)

    def taskbar(self) -> list[WindowState]:
        return [w for w in self._windows.values() if w.minimized]

    def top(self) -> Optional[WindowState]:
        shown = self.visible()
        return shown[-1] if shown else None

    # ---------- drag ----------
    @property
    def active_drag(self) -> Optional[DragSession]:
        return self._drag

    def _max_x(self) -> int:
        return max(0, self.viewport.width - self.margin)

    def _max_y(self) -> int:
        return max(0, self.viewport.height - self.margin)

    def begin_drag(self, window_id: str, pointer_x: int, pointer_y: int) -> bool:
        if self._drag is not None:
            return False
        state = self._windows.get(window_id)
        if state is None or state.maximized or state.minimized:
            return False
        self.bring_to_front(window_id)
        self._drag = DragSession(window_id, pointer_x, pointer_y, state.x, state.y)
        return True

    def drag_to(self, pointer_x: int, pointer_y: int) -> Optional[WindowState]:
        drag = self._drag
        if drag is None:
            return None
        state = self._windows[drag.window_id]
        state.x = _clamp(drag.origin_x + (pointer_x - drag.pointer_x), 0, self._max_x())
        state.y = _clamp(drag.origin_y + (pointer_y - drag.pointer_y), 0, self._max_y())
        return state

    def end_drag(self) -> Optional[WindowState]:
        drag, self._drag = self._drag, None
        if drag is None:
            return None
        return self._windows.get(drag.window_id)
