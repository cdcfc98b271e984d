from .window_manager import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    DRAG_MARGIN,
    DragSession,
    Geometry,
    Viewport,
    WindowManager,
    WindowState,
)

__all__ = [
    "DEFAULT_HEIGHT",
    "DEFAULT_WIDTH",
    "DRAG_MARGIN",
    "DragSession",
    "Geometry",
    "Viewport",
    "WindowManager",
    "WindowState",
]
