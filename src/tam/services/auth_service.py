from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import hmac
import logging
import re
import uuid

from tam.domain.errors import AuthorizationError, NotFoundError, ValidationError
from tam.domain.models import Identity, Permission, Role
from tam.repositories.sqlite_repo import KEY_PASSWORDS, KEY_USERS

log = logging.getLogger("tam.auth")


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset({
        Permission.VIEW_ALL_BOOKINGS,
        Permission.CREATE_BOOKING,
        Permission.EDIT_BOOKING,
        Permission.DELETE_BOOKING,
        Permission.PURCHASE_TICKETS,
        Permission.VIEW_PURCHASE_PRICE,
        Permission.LOCK_TICKETS,
        Permission.VIEW_AVAILABLE_TICKETS,
        Permission.VIEW_REPORTS,
        Permission.VIEW_PROFIT,
        Permission.MANAGE_USERS,
        Permission.EXPORT_DATA,
        Permission.SYSTEM_SETTINGS,
    }),
    Role.MANAGER: frozenset({
        Permission.VIEW_OWN_BOOKINGS,
        Permission.CREATE_BOOKING,
        Permission.EDIT_OWN_BOOKING,
        Permission.VIEW_AVAILABLE_TICKETS,
        Permission.UPDATE_PAYMENT_STATUS,
        Permission.VIEW_REPORTS,
    }),
}

# Accounts without a stored password fall back to the shared password of their role.
DEMO_PASSWORDS: dict[Role, str] = {
    Role.ADMIN: "admin123",
    Role.MANAGER: "manager123",
}

MIN_PASSWORD_LENGTH = 6


def _validate_secret_strength(secret: str, *, min_len: int) -> None:
    if len(secret) < min_len:
        raise ValidationError(f"Password must have at least {min_len} characters.")
    if not re.search(r"[A-Za-z]", secret):
        raise ValidationError("Password must include at least one letter.")
    if not re.search(r"\d", secret):
        raise ValidationError("Password must include at least one number.")


def _now_iso() -> str:
    return datetime.now().replace(microsecond=0).isoformat()


class Session:
    """Identity of whoever is logged into this console.

    Passed explicitly to every service that checks permissions or filters by
    owner. An empty session has no permissions at all.
    """

    def __init__(self, identity: Identity | None = None):
        self.identity = identity

    @property
    def is_logged_in(self) -> bool:
        return self.identity is not None

    @property
    def username(self) -> str | None:
        return self.identity.username if self.identity else None

    def has_permission(self, permission: Permission) -> bool:
        if self.identity is None:
            return False
        return permission in ROLE_PERMISSIONS.get(self.identity.role, frozenset())

    def is_admin(self) -> bool:
        return self.identity is not None and self.identity.role is Role.ADMIN

    def is_manager(self) -> bool:
        return self.identity is not None and self.identity.role is Role.MANAGER

    def require(self, *permissions: Permission) -> Identity:
        """Return the identity if it holds any of ``permissions``."""
        if self.identity is None:
            raise AuthorizationError("You must be logged in.")
        if not any(self.has_permission(p) for p in permissions):
            names = ", ".join(p.value for p in permissions)
            raise AuthorizationError(f"Role '{self.identity.role.value}' is not allowed to perform '{names}'.")
        return self.identity


class AuthService:
    def __init__(self, repo, session: Session | None = None):
        self.repo = repo
        self.session = session or Session()

    def restore(self) -> Session:
        self.session.identity = self.repo.load_session()
        if self.session.identity is not None:
            log.info("session_restored username=%s", self.session.identity.username)
        return self.session

    def login(self, username: str, password: str) -> bool:
        username_clean = (username or "").strip()
        if not username_clean or not password:
            return False

        identities = self.repo.load_identities()
        user = next((u for u in identities if u.username == username_clean and u.is_active), None)
        if user is None or not self._password_matches(user, password):
            log.warning("login_failed username=%s", username_clean)
            return False

        updated = replace(user, last_login=_now_iso())
        self.repo.save_identities([updated if u.id == user.id else u for u in identities])
        self.repo.save_session(updated)
        self.session.identity = updated
        log.info("login_ok username=%s role=%s", updated.username, updated.role.value)
        return True

    def _password_matches(self, user: Identity, password: str) -> bool:
        stored = self.repo.load_passwords().get(user.username)
        if stored:
            return self.repo.verify_password(stored, password)
        return hmac.compare_digest(password, DEMO_PASSWORDS[user.role])

    def logout(self) -> None:
        if self.session.identity is not None:
            log.info("logout username=%s", self.session.identity.username)
        self.session.identity = None
        self.repo.clear_session()

    def has_permission(self, permission: Permission) -> bool:
        return self.session.has_permission(permission)

    # ---------- user management ----------
    def list_users(self, search: str = "", role_filter: str | None = None) -> list[Identity]:
        self.session.require(Permission.MANAGE_USERS)
        term = (search or "").strip().lower()
        out = []
        for u in self.repo.load_identities():
            if term and not (
                term in u.name.lower()
                or term in u.username.lower()
                or term in (u.email or "").lower()
            ):
                continue
            if role_filter and role_filter != "all" and u.role.value != role_filter:
                continue
            out.append(u)
        return out

    def create_user(self, username: str, password: str, role: str, name: str, email: str | None = None) -> Identity:
        actor = self.session.require(Permission.MANAGE_USERS)

        user = (username or "").strip()
        secret = password or ""
        display = (name or "").strip()
        if not user or not secret.strip() or not display:
            raise ValidationError("Username, password and name are required.")
        try:
            target_role = Role((role or "").strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown role '{role}'.") from None
        _validate_secret_strength(secret, min_len=MIN_PASSWORD_LENGTH)

        identities = self.repo.load_identities()
        if any(u.username == user for u in identities):
            raise ValidationError(f"Username '{user}' is already taken.")

        created = Identity(
            id=uuid.uuid4().hex[:12],
            username=user,
            role=target_role,
            name=display,
            email=(email or "").strip() or None,
            created_at=_now_iso(),
            is_active=True,
        )
        passwords = self.repo.load_passwords()
        passwords[user] = self.repo.hash_password(secret)
        self.repo.set_many({
            KEY_USERS: [u.to_dict() for u in [*identities, created]],
            KEY_PASSWORDS: passwords,
        })
        log.info("user_created username=%s role=%s actor=%s", user, target_role.value, actor.username)
        return created

    def toggle_user_status(self, user_id: str) -> Identity:
        actor = self.session.require(Permission.MANAGE_USERS)
        identities = self.repo.load_identities()
        target = self._find_user(identities, user_id)
        if target.id == actor.id:
            raise ValidationError("You cannot deactivate your own account.")

        updated = replace(target, is_active=not target.is_active)
        self.repo.save_identities([updated if u.id == target.id else u for u in identities])
        log.info("user_status_changed username=%s active=%s actor=%s", target.username, updated.is_active, actor.username)
        return updated

    def delete_user(self, user_id: str) -> None:
        actor = self.session.require(Permission.MANAGE_USERS)
        identities = self.repo.load_identities()
        target = self._find_user(identities, user_id)
        if target.id == actor.id:
            raise ValidationError("You cannot delete your own account.")

        passwords = self.repo.load_passwords()
        passwords.pop(target.username, None)
        self.repo.set_many({
            KEY_USERS: [u.to_dict() for u in identities if u.id != target.id],
            KEY_PASSWORDS: passwords,
        })
        log.info("user_deleted username=%s actor=%s", target.username, actor.username)

    def reset_password(self, username: str, new_password: str) -> None:
        actor = self.session.require(Permission.MANAGE_USERS)
        secret = new_password or ""
        if not any(u.username == username for u in self.repo.load_identities()):
            raise NotFoundError("User not found.")
        _validate_secret_strength(secret, min_len=MIN_PASSWORD_LENGTH)

        passwords = self.repo.load_passwords()
        passwords[username] = self.repo.hash_password(secret)
        self.repo.save_passwords(passwords)
        log.info("password_reset username=%s actor=%s", username, actor.username)

    @staticmethod
    def _find_user(identities: list[Identity], user_id: str) -> Identity:
        for u in identities:
            if u.id == user_id:
                return u
        raise NotFoundError("User not found.")
