from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from dataclasses import fields

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import (
    CompanySettings,
    NotificationSettings,
    Permission,
    SecuritySettings,
    SystemSettings,
)


def _label(name: str) -> str:
    return name.replace("_", " ").capitalize()


class SettingsView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.company_vars: dict[str, tk.StringVar] = {}
        self.notification_vars: dict[str, tk.BooleanVar] = {}
        self.security_vars: dict[str, tk.Variable] = {}

        self._build()

    def _build(self):
        nb = ttk.Notebook(self.frame)
        nb.pack(fill="both", expand=True, padx=10, pady=(10, 6))

        company = ttk.Frame(nb)
        nb.add(company, text="Company")
        for row, f in enumerate(fields(CompanySettings)):
            var = tk.StringVar()
            self.company_vars[f.name] = var
            ttk.Label(company, text=_label(f.name)).grid(row=row % 7, column=(row // 7) * 2, sticky="w", padx=8, pady=3)
            ttk.Entry(company, textvariable=var, width=24)\
                .grid(row=row % 7, column=(row // 7) * 2 + 1, sticky="ew", padx=8, pady=3)

        notifications = ttk.Frame(nb)
        nb.add(notifications, text="Notifications")
        for row, f in enumerate(fields(NotificationSettings)):
            var = tk.BooleanVar()
            self.notification_vars[f.name] = var
            ttk.Checkbutton(notifications, text=_label(f.name), variable=var)\
                .grid(row=row, column=0, sticky="w", padx=8, pady=3)

        security = ttk.Frame(nb)
        nb.add(security, text="Security")
        for row, f in enumerate(fields(SecuritySettings)):
            if f.name in ("two_factor_auth", "ip_restriction"):
                var = tk.BooleanVar()
                ttk.Checkbutton(security, text=_label(f.name), variable=var)\
                    .grid(row=row, column=0, columnspan=2, sticky="w", padx=8, pady=3)
            else:
                var = tk.StringVar()
                text = "Allowed IPs (comma separated)" if f.name == "allowed_ips" else _label(f.name)
                ttk.Label(security, text=text).grid(row=row, column=0, sticky="w", padx=8, pady=3)
                ttk.Entry(security, textvariable=var, width=30).grid(row=row, column=1, sticky="ew", padx=8, pady=3)
            self.security_vars[f.name] = var

        btns = ttk.Frame(self.frame)
        btns.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Button(btns, text="Save", style="Big.TButton", command=self.on_save).pack(side="left")
        ttk.Button(btns, text="Export JSON", command=self.on_export).pack(side="left", padx=10)
        ttk.Button(btns, text="Import JSON", command=self.on_import).pack(side="left")

    def refresh(self):
        s = self.app.settings.load()
        for name, var in self.company_vars.items():
            var.set(getattr(s.company, name))
        for name, var in self.notification_vars.items():
            var.set(getattr(s.notifications, name))
        for name, var in self.security_vars.items():
            value = getattr(s.security, name)
            var.set(", ".join(value) if name == "allowed_ips" else value)

    def collect(self) -> SystemSettings:
        security = {name: var.get() for name, var in self.security_vars.items()}
        security["allowed_ips"] = [ip.strip() for ip in str(security["allowed_ips"]).split(",") if ip.strip()]
        try:
            return SystemSettings(
                company=CompanySettings(**{name: var.get().strip() for name, var in self.company_vars.items()}),
                notifications=NotificationSettings(**{name: bool(var.get()) for name, var in self.notification_vars.items()}),
                security=SecuritySettings.from_dict(self._security_dict(security)),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid security settings: {e}") from None

    @staticmethod
    def _security_dict(values: dict) -> dict:
        return {
            "passwordExpiry": values["password_expiry"],
            "sessionTimeout": values["session_timeout"],
            "twoFactorAuth": values["two_factor_auth"],
            "loginAttempts": values["login_attempts"],
            "ipRestriction": values["ip_restriction"],
            "allowedIPs": values["allowed_ips"],
        }

    def on_save(self):
        try:
            if not self.app.can(Permission.SYSTEM_SETTINGS):
                raise AuthorizationError("Only admin can change settings.")
            self.app.settings.save(self.collect(), self.app.session)
        except Exception as e:
            self.app.handle_error("Settings", e, "Failed to save settings.")
            return

        self.app.toast("Settings saved.", kind="success")

    def on_export(self):
        try:
            if not self.app.can(Permission.SYSTEM_SETTINGS):
                raise AuthorizationError("Only admin can export settings.")
            target = filedialog.askdirectory(title="Export settings to", initialdir=self.app.exports_dir)
            if not target:
                return
            path = self.app.settings.export_json(target, self.app.session)
        except Exception as e:
            self.app.handle_error("Export error", e, "Settings export failed.")
            return

        self.app.toast(f"Settings exported: {path.name}", kind="success")

    def on_import(self):
        try:
            if not self.app.can(Permission.SYSTEM_SETTINGS):
                raise AuthorizationError("Only admin can import settings.")
            path = filedialog.askopenfilename(title="Import settings", filetypes=[("JSON files", "*.json")])
            if not path:
                return
            self.app.settings.import_json(path, self.app.session)
        except Exception as e:
            self.app.handle_error("Import error", e, "Settings import failed.")
            return

        self.refresh()
        self.app.toast("Settings imported.", kind="success")
