import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


DEMO_PASSWORDS = {"admin": "admin123", "manager1": "manager123"}


def make_repo(tmp_path: Path, name: str = "agency.db"):
    from tam.repositories.sqlite_repo import SqliteRepository

    repo = SqliteRepository(tmp_path / name)
    repo.init_db()
    return repo


def login(repo, username: str = "admin", password: str | None = None):
    from tam.services.auth_service import AuthService

    auth = AuthService(repo)
    assert auth.login(username, password or DEMO_PASSWORDS[username])
    return auth.session


def purchase_ticket(inventory, session, **overrides):
    fields = {
        "pnr": "XYZ123",
        "airline": "Biman",
        "route": "DAC-DXB",
        "flight_date": "2025-03-01",
        "purchase_price": 10000,
        "tax": 500,
        "supplier": "SkyTrade",
    }
    fields.update(overrides)
    return inventory.purchase(fields, session)
