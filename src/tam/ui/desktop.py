from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from dataclasses import dataclass
import logging
from typing import Callable

from tam.domain.models import Permission
from tam.windowing.window_manager import WindowManager

log = logging.getLogger(__name__)

DRAG_SEQUENCES = ("<B1-Motion>", "<ButtonRelease-1>")


@dataclass(frozen=True)
class Module:
    id: str
    title: str
    icon: str
    permissions: tuple[Permission, ...]
    view_factory: Callable


class DesktopWindow:
    """Title bar + body frame for one open module."""

    def __init__(self, desktop: "Desktop", module: Module):
        self.module = module
        self.frame = tk.Frame(desktop.frame, bd=1, relief="raised", bg="#ffffff")

        bar = tk.Frame(self.frame, bg="#1e3a5f", height=28)
        bar.pack(fill="x")
        self.title_label = tk.Label(
            bar, text=f"{module.icon}  {module.title}", bg="#1e3a5f", fg="#ffffff",
            font=("Segoe UI", 10, "bold"), anchor="w",
        )
        self.title_label.pack(side="left", fill="x", expand=True, padx=8, pady=4)

        for text, command in (
            ("✕", lambda: desktop.close(module.id)),
            ("□", lambda: desktop.toggle_maximize(module.id)),
            ("_", lambda: desktop.minimize(module.id)),
        ):
            tk.Button(bar, text=text, width=3, relief="flat", bg="#1e3a5f", fg="#ffffff",
                      activebackground="#2c5282", command=command).pack(side="right", padx=1)

        # Only the title area starts a drag; control buttons handle their own clicks.
        for w in (bar, self.title_label):
            w.bind("<ButtonPress-1>", lambda e: desktop.on_title_press(module.id, e))
            w.bind("<Double-Button-1>", lambda _e: desktop.toggle_maximize(module.id))

        self.body = ttk.Frame(self.frame)
        self.body.pack(fill="both", expand=True)
        self.view = module.view_factory(self.body, desktop.app)
        self._bind_focus(self.body, lambda _e: desktop.focus(module.id))

    def _bind_focus(self, widget, handler):
        widget.bind("<ButtonPress-1>", handler, add="+")
        for child in widget.winfo_children():
            self._bind_focus(child, handler)

    def refresh(self):
        refresh = getattr(self.view, "refresh", None)
        if refresh is not None:
            refresh()

    def destroy(self):
        self.frame.destroy()


class Desktop:
    """Renders ``WindowManager`` state as placed frames plus a taskbar strip."""

    def __init__(self, parent, app, windows: WindowManager):
        self.app = app
        self.windows = windows
        self._frames: dict[str, DesktopWindow] = {}
        self._modules: dict[str, Module] = {}
        self._drag_funcids: dict[str, str] | None = None

        self.frame = tk.Frame(parent, bg="#e2e8f0", highlightthickness=0)
        self.frame.pack(fill="both", expand=True)
        self.frame.bind("<Configure>", self._on_resize)

        self.taskbar = ttk.Frame(parent)
        self.taskbar.pack(fill="x", pady=(4, 0))

    # ---------- module lifecycle ----------
    def open(self, module: Module) -> None:
        if not self.app.can(*module.permissions):
            self.app.toast(f"Not allowed: {module.title}", kind="warn")
            return
        self._modules[module.id] = module
        state = self.windows.open(module.id)
        if module.id not in self._frames:
            self._frames[module.id] = DesktopWindow(self, module)
            self._frames[module.id].refresh()
        log.debug("module_opened id=%s z=%s", module.id, state.z_index)
        self.render()

    def close(self, window_id: str) -> None:
        active = self.windows.active_drag
        if active is not None and active.window_id == window_id:
            self._unbind_drag()
        self.windows.close(window_id)
        win = self._frames.pop(window_id, None)
        if win is not None:
            win.destroy()
        self.render()

    def minimize(self, window_id: str) -> None:
        self.windows.minimize(window_id)
        if self.windows.active_drag is None:
            self._unbind_drag()
        self.render()

    def restore(self, window_id: str) -> None:
        self.windows.restore(window_id)
        self.render()

    def toggle_maximize(self, window_id: str) -> None:
        self.windows.toggle_maximize(window_id)
        self.render()

    def focus(self, window_id: str) -> None:
        if not self.windows.is_open(window_id) or self.windows.get(window_id).minimized:
            return
        top = self.windows.top()
        if top is not None and top.id == window_id:
            return
        self.windows.bring_to_front(window_id)
        self.render()

    def refresh_open(self) -> None:
        for win in self._frames.values():
            win.refresh()

    def teardown(self) -> None:
        self.windows.end_drag()
        self._unbind_drag()
        for window_id in list(self._frames):
            self.windows.close(window_id)
            self._frames.pop(window_id).destroy()

    # ---------- drag ----------
    def on_title_press(self, window_id: str, event) -> None:
        if self.windows.begin_drag(window_id, event.x_root, event.y_root):
            self._bind_drag()
        else:
            self.focus(window_id)
        self.render()

    def _bind_drag(self) -> None:
        if self._drag_funcids is not None:
            return
        self._drag_funcids = {
            "<B1-Motion>": self.app.bind("<B1-Motion>", self._on_drag_motion, add="+"),
            "<ButtonRelease-1>": self.app.bind("<ButtonRelease-1>", self._on_drag_release, add="+"),
        }

    def _unbind_drag(self) -> None:
        funcids, self._drag_funcids = self._drag_funcids, None
        if funcids is None:
            return
        for seq in DRAG_SEQUENCES:
            self.app.unbind(seq, funcids[seq])

    def _on_drag_motion(self, event) -> None:
        state = self.windows.drag_to(event.x_root, event.y_root)
        if state is None:
            return
        win = self._frames.get(state.id)
        if win is not None:
            win.frame.place_configure(x=state.x, y=state.y)

    def _on_drag_release(self, _event=None) -> None:
        self.windows.end_drag()
        self._unbind_drag()
        self.render()

    # ---------- rendering ----------
    def _on_resize(self, event) -> None:
        self.windows.set_viewport(event.width, event.height)
        self.render()

    def render(self) -> None:
        for state in self.windows.visible():
            win = self._frames.get(state.id)
            if win is None:
                continue
            win.frame.place(x=state.x, y=state.y, width=state.width, height=state.height)
            win.frame.lift()
        for state in self.windows.taskbar():
            win = self._frames.get(state.id)
            if win is not None:
                win.frame.place_forget()
        self._render_taskbar()

    def _render_taskbar(self) -> None:
        for child in self.taskbar.winfo_children():
            child.destroy()
        minimized = self.windows.taskbar()
        if not minimized:
            return
        ttk.Label(self.taskbar, text="Minimized:").pack(side="left", padx=(4, 8))
        for state in minimized:
            module = self._modules.get(state.id)
            label = f"{module.icon} {module.title}" if module else state.id
            ttk.Button(self.taskbar, text=label,
                       command=lambda wid=state.id: self.restore(wid)).pack(side="left", padx=2)
