from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import Permission, Role


class UsersView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.search_var = tk.StringVar()
        self.role_filter = tk.StringVar(value="all")
        self.new_role = tk.StringVar(value=Role.MANAGER.value)

        self._build()

    def _entry(self, parent, label, row, show=None):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=20, show=show)
        e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        return e

    def _build(self):
        left = ttk.LabelFrame(self.frame, text="New user")
        left.pack(side="left", fill="y", padx=(10, 6), pady=8)
        self.u_username = self._entry(left, "Username *", 0)
        self.u_password = self._entry(left, "Password *", 1, show="•")
        self.u_name = self._entry(left, "Full name *", 2)
        self.u_email = self._entry(left, "Email", 3)
        ttk.Label(left, text="Role").grid(row=4, column=0, sticky="w", padx=8, pady=4)
        ttk.Combobox(left, textvariable=self.new_role, values=[r.value for r in Role], state="readonly", width=12)\
            .grid(row=4, column=1, sticky="w", padx=8, pady=4)
        ttk.Button(left, text="Create user", command=self.on_create).grid(row=5, column=0, columnspan=2, sticky="ew", padx=8, pady=8)

        right = ttk.LabelFrame(self.frame, text="Users")
        right.pack(side="right", fill="both", expand=True, padx=(0, 10), pady=8)

        top = ttk.Frame(right)
        top.pack(fill="x", padx=6, pady=6)
        ttk.Label(top, text="Search").pack(side="left")
        search = ttk.Entry(top, textvariable=self.search_var, width=20)
        search.pack(side="left", padx=(6, 12))
        search.bind("<KeyRelease>", lambda _e: self.refresh())
        roles = ttk.Combobox(top, textvariable=self.role_filter, values=["all", *[r.value for r in Role]],
                             state="readonly", width=10)
        roles.pack(side="left")
        roles.bind("<<ComboboxSelected>>", lambda _e: self.refresh())

        cols = ("username", "name", "email", "role", "active", "last_login")
        heads = {"username": "Username", "name": "Name", "email": "Email", "role": "Role",
                 "active": "Active", "last_login": "Last login"}
        widths = {"username": 100, "name": 140, "email": 170, "role": 70, "active": 60, "last_login": 140}
        self.tree = ttk.Treeview(right, columns=cols, show="headings", style="Modern.Treeview")
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        self.tree.tag_configure("inactive", foreground="#94a3b8")
        self.tree.pack(fill="both", expand=True, padx=6)

        actions = ttk.Frame(right)
        actions.pack(fill="x", padx=6, pady=6)
        ttk.Button(actions, text="Activate / Deactivate", command=self.on_toggle_status).pack(side="left")
        ttk.Button(actions, text="Reset password", command=self.on_reset_password).pack(side="left", padx=10)
        ttk.Button(actions, text="Delete", command=self.on_delete).pack(side="left")

    def refresh(self):
        for item in self.tree.get_children():
            self.tree.delete(item)
        for u in self.app.auth.list_users(self.search_var.get(), self.role_filter.get()):
            self.tree.insert("", "end", iid=u.id, values=(
                u.username, u.name, u.email or "", u.role.value,
                "yes" if u.is_active else "no", u.last_login or "never",
            ), tags=() if u.is_active else ("inactive",))

    def _selected(self) -> tuple[str, str]:
        sel = self.tree.selection()
        if not sel:
            raise ValidationError("Select a user.")
        return str(sel[0]), str(self.tree.item(sel[0], "values")[0])

    def _require_admin(self):
        if not self.app.can(Permission.MANAGE_USERS):
            raise AuthorizationError("Only admin can manage users.")

    def on_create(self):
        try:
            self._require_admin()
            user = self.app.auth.create_user(
                self.u_username.get(), self.u_password.get(), self.new_role.get(),
                self.u_name.get(), self.u_email.get(),
            )
        except Exception as e:
            self.app.handle_error("Create user", e, "Failed to create user.")
            return

        self.app.toast(f"User '{user.username}' created.", kind="success")
        for e in (self.u_username, self.u_password, self.u_name, self.u_email):
            e.delete(0, tk.END)
        self.refresh()

    def on_toggle_status(self):
        try:
            self._require_admin()
            user_id, _username = self._selected()
            user = self.app.auth.toggle_user_status(user_id)
        except Exception as e:
            self.app.handle_error("User status", e, "Failed to change user status.")
            return

        self.app.toast(f"User '{user.username}' {'activated' if user.is_active else 'deactivated'}.", kind="success")
        self.refresh()

    def on_reset_password(self):
        try:
            self._require_admin()
            _user_id, username = self._selected()
            secret = simpledialog.askstring("Reset password", f"New password for {username}:", show="•", parent=self.frame)
            if secret is None:
                return
            self.app.auth.reset_password(username, secret)
        except Exception as e:
            self.app.handle_error("Reset password", e, "Password reset failed.")
            return

        self.app.toast(f"Password reset for '{username}'.", kind="success")

    def on_delete(self):
        try:
            self._require_admin()
            user_id, username = self._selected()
            if not messagebox.askyesno("Confirm delete", f"Delete user '{username}'?", parent=self.frame):
                return
            self.app.auth.delete_user(user_id)
        except Exception as e:
            self.app.handle_error("Delete user", e, "Failed to delete user.")
            return

        self.app.toast(f"User '{username}' deleted.", kind="success")
        self.refresh()
