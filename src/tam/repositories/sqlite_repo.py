from __future__ import annotations

import hashlib
import hmac
import json
import logging
import secrets
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, TypeVar

from tam.domain.models import Booking, Identity, InventoryTicket

log = logging.getLogger(__name__)

T = TypeVar("T")

KEY_CURRENT_USER = "currentUser"
KEY_USERS = "systemUsers"
KEY_PASSWORDS = "userPasswords"
KEY_TICKETS = "purchasedTickets"
KEY_BOOKINGS = "travel_bookings"
KEY_COMPANY_SETTINGS = "companySettings"
KEY_NOTIFICATION_SETTINGS = "notificationSettings"
KEY_SECURITY_SETTINGS = "securitySettings"

DEFAULT_USERS = (
    {
        "id": "1",
        "username": "admin",
        "role": "admin",
        "name": "System Admin",
        "email": "admin@travelagency.com",
    },
    {
        "id": "2",
        "username": "manager1",
        "role": "manager",
        "name": "Manager One",
        "email": "manager1@travelagency.com",
    },
)


class SqliteRepository:
    """Key/value store of JSON documents backed by a single SQLite table.

    Every collection (tickets, bookings, users...) lives under one key and is
    rewritten as a whole. Reads never raise on bad data: a blob that does not
    decode, or an element that does not map onto its entity, is logged and
    replaced by the caller's default.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        self.run_migrations()
        self._ensure_default_users()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_kv_store),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_kv_store(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )

    def _ensure_default_users(self) -> None:
        if self.get_raw(KEY_USERS) is not None:
            return
        now = datetime.now().replace(microsecond=0).isoformat()
        users = [Identity.from_dict({**u, "createdAt": now, "isActive": True}) for u in DEFAULT_USERS]
        self.save_identities(users)
        log.info("default_users_seeded count=%s", len(users))

    # ---------- raw key/value ----------
    def get_raw(self, key: str) -> Optional[str]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cur.fetchone()
        conn.close()
        return str(row[0]) if row else None

    def get_json(self, key: str, default=None):
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            log.warning("storage_blob_malformed key=%s error=%s", key, e)
            return default

    def set_json(self, key: str, value) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, object], removals: Iterable[str] = ()) -> None:
        """Write every key in one transaction; nothing is persisted if any write fails."""
        conn = self._conn()
        cur = conn.cursor()
        try:
            for key, value in values.items():
                cur.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(value, ensure_ascii=False)),
                )
            for key in removals:
                cur.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        conn.commit()
        conn.close()

    def keys(self) -> list[str]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT key FROM kv_store ORDER BY key")
        rows = cur.fetchall()
        conn.close()
        return [str(r[0]) for r in rows]

    def _load_list(self, key: str, factory: Callable[[dict], T]) -> list[T]:
        data = self.get_json(key, [])
        if not isinstance(data, list):
            log.warning("storage_collection_malformed key=%s type=%s", key, type(data).__name__)
            return []
        out: list[T] = []
        for idx, item in enumerate(data):
            try:
                out.append(factory(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                log.warning("storage_item_skipped key=%s index=%s error=%s", key, idx, e)
        return out

    # ---------- identities ----------
    def load_identities(self) -> list[Identity]:
        return self._load_list(KEY_USERS, Identity.from_dict)

    def save_identities(self, identities: Iterable[Identity]) -> None:
        self.set_json(KEY_USERS, [i.to_dict() for i in identities])

    def load_passwords(self) -> dict[str, str]:
        data = self.get_json(KEY_PASSWORDS, {})
        if not isinstance(data, dict):
            log.warning("storage_collection_malformed key=%s type=%s", KEY_PASSWORDS, type(data).__name__)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def save_passwords(self, passwords: dict[str, str]) -> None:
        self.set_json(KEY_PASSWORDS, dict(passwords))

    # ---------- session ----------
    def load_session(self) -> Optional[Identity]:
        data = self.get_json(KEY_CURRENT_USER)
        if data is None:
            if self.get_raw(KEY_CURRENT_USER) is not None:
                self.clear_session()
            return None
        try:
            return Identity.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("storage_session_malformed error=%s", e)
            self.clear_session()
            return None

    def save_session(self, identity: Identity) -> None:
        self.set_json(KEY_CURRENT_USER, identity.to_dict())

    def clear_session(self) -> None:
        self.remove(KEY_CURRENT_USER)

    # ---------- inventory + bookings ----------
    def load_tickets(self) -> list[InventoryTicket]:
        return self._load_list(KEY_TICKETS, InventoryTicket.from_dict)

    def save_tickets(self, tickets: Iterable[InventoryTicket]) -> None:
        self.set_json(KEY_TICKETS, [t.to_dict() for t in tickets])

    def load_bookings(self) -> list[Booking]:
        return self._load_list(KEY_BOOKINGS, Booking.from_dict)

    def save_bookings(self, bookings: Iterable[Booking]) -> None:
        self.set_json(KEY_BOOKINGS, [b.to_dict() for b in bookings])

    # ---------- settings ----------
    def load_settings(self, key: str, factory: Callable[[dict], T], default: T) -> T:
        data = self.get_json(key)
        if data is None:
            return default
        try:
            return factory(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("storage_settings_malformed key=%s error=%s", key, e)
            return default

    def save_settings(self, key: str, section) -> None:
        self.set_json(key, section.to_dict())

    # ---------- passwords ----------
    @staticmethod
    def hash_password(password: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
        salt = salt or secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
        return f"pbkdf2_sha256${rounds}${salt}${digest}"

    @staticmethod
    def verify_password(stored: str, provided: str) -> bool:
        if not stored.startswith("pbkdf2_sha256$"):
            return False
        try:
            _algo, rounds_s, salt, digest = stored.split("$", 3)
            candidate = hashlib.pbkdf2_hmac(
                "sha256",
                provided.encode("utf-8"),
                bytes.fromhex(salt),
                int(rounds_s),
            ).hex()
        except ValueError:
            return False
        return hmac.compare_digest(candidate, digest)
