import itertools
import re
from datetime import datetime, timedelta, timezone

import pytest

from app.security import reset_rate_limits
from core.credentials import CredentialConfig, CredentialManager
from core.db.users.models import Role, user_from_row
from core.db.users.user_store import normalize_email
from core.tokens import TokenIssuer


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to_email: str, subject: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("SMTP unavailable")
        self.sent.append({"to": to_email, "subject": subject, "body": body})

    @property
    def last_token(self) -> str:
        return re.search(r"/([0-9a-f]{64})\b", self.sent[-1]["body"]).group(1)


class FakeUserStore:
    """In-memory stand-in for UserStore with the same conditional writes."""

    def __init__(self):
        self.rows = {}
        self._ids = itertools.count(1)

    def _find(self, pred):
        for row in self.rows.values():
            if pred(row):
                return user_from_row(dict(row))
        return None

    def get_user_by_id(self, user_id):
        return self._find(lambda r: r["id"] == user_id)

    def get_user_by_email(self, email):
        return self._find(lambda r: r["email"] == normalize_email(email))

    def get_user_by_name_and_email(self, name, email):
        return self._find(lambda r: r["name"] == name and r["email"] == normalize_email(email))

    def get_user_by_email_token(self, token):
        return self._find(lambda r: token and r["email_token"] == token)

    def get_user_by_reset_token(self, token):
        return self._find(lambda r: token and r["reset_password_token"] == token)

    def create_pending_user(self, name, email, email_token, expires_at, role=Role.STUDENT):
        email = normalize_email(email)
        if any(r["email"] == email for r in self.rows.values()):
            return None
        user_id = next(self._ids)
        self.rows[user_id] = {
            "id": user_id,
            "name": name,
            "email": email,
            "password": "",
            "role": role.value,
            "email_token": email_token,
            "email_token_expiry": expires_at,
            "reset_password_token": None,
            "reset_password_expiry": None,
            "refresh_token": None,
        }
        return user_from_row(dict(self.rows[user_id]))

    def delete_pending_user(self, user_id, email_token):
        row = self.rows.get(user_id)
        if row and row["email_token"] == email_token:
            del self.rows[user_id]
            return True
        return False

    def activate_user(self, user_id, email_token, password_hash):
        row = self.rows.get(user_id)
        if not row or row["email_token"] != email_token:
            return False
        row.update(password=password_hash, email_token=None, email_token_expiry=None)
        return True

    def start_session(self, user_id, refresh_token):
        row = self.rows.get(user_id)
        if not row or row["refresh_token"] is not None:
            return False
        row["refresh_token"] = refresh_token
        return True

    def end_session(self, user_id):
        row = self.rows.get(user_id)
        if not row:
            return False
        row["refresh_token"] = None
        return True

    def set_reset_token(self, user_id, token, expires_at):
        row = self.rows.get(user_id)
        if not row or row["email_token"] is not None:
            return False
        row.update(reset_password_token=token, reset_password_expiry=expires_at)
        return True

    def complete_password_reset(self, user_id, reset_token, password_hash):
        row = self.rows.get(user_id)
        if not row or row["reset_password_token"] != reset_token:
            return False
        row.update(password=password_hash, reset_password_token=None, reset_password_expiry=None)
        return True

    def delete_expired_pending_users(self, now):
        expired = [
            uid for uid, r in self.rows.items()
            if r["email_token"] is not None and r["email_token_expiry"] < now
        ]
        for uid in expired:
            del self.rows[uid]
        return len(expired)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def store():
    return FakeUserStore()


@pytest.fixture
def issuer():
    return TokenIssuer("test-secret")


@pytest.fixture
def manager(store, mailer, issuer, clock):
    return CredentialManager(
        CredentialConfig(
            store=store,
            send_email=mailer,
            issuer=issuer,
            public_base_url="https://example.test/",
            bcrypt_rounds=4,
            clock=clock,
        )
    )


@pytest.fixture(autouse=True)
def _clean_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()
