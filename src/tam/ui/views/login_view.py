from __future__ import annotations

from tkinter import ttk, messagebox


class LoginView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        box = ttk.LabelFrame(self.frame, text="Sign in")
        box.place(relx=0.5, rely=0.4, anchor="center")

        ttk.Label(box, text="Travel Agency Manager", style="Title.TLabel")\
            .grid(row=0, column=0, columnspan=2, padx=16, pady=(14, 10))

        ttk.Label(box, text="Username").grid(row=1, column=0, sticky="w", padx=16, pady=4)
        self.username = ttk.Entry(box, width=28)
        self.username.grid(row=1, column=1, padx=16, pady=4)

        ttk.Label(box, text="Password").grid(row=2, column=0, sticky="w", padx=16, pady=4)
        self.password = ttk.Entry(box, width=28, show="•")
        self.password.grid(row=2, column=1, padx=16, pady=4)

        ttk.Button(box, text="Login", style="Big.TButton", command=self.on_login)\
            .grid(row=3, column=0, columnspan=2, sticky="ew", padx=16, pady=(10, 6))

        ttk.Label(box, text="Demo: admin / admin123  ·  manager1 / manager123", foreground="#64748b")\
            .grid(row=4, column=0, columnspan=2, padx=16, pady=(0, 14))

        for e in (self.username, self.password):
            e.bind("<Return>", lambda _e: self.on_login())
        self.username.focus_set()

    def on_login(self):
        username = self.username.get().strip()
        password = self.password.get()
        if not username or not password:
            messagebox.showwarning("Login", "Enter username and password.")
            return

        if not self.app.auth.login(username, password):
            messagebox.showerror("Login", "Invalid username or password.")
            self.app.toast("Login failed.", kind="error")
            self.password.delete(0, "end")
            return

        self.app.on_logged_in()
