"""In-memory stand-ins for the account store, audit sink and challenge store."""

import secrets
import time
from dataclasses import replace
from datetime import timedelta

import pyotp

from security.challenge import ActiveChallenge
from security.errors import InfrastructureError
from security.outcomes import AccountRecord
from security.password import hash_password


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class InMemoryAccountStore:
    def __init__(self, rounds=4):
        self.rounds = rounds
        self.rows = {}
        self.lookups = 0
        self.writes = []
        self.fail_writes = False
        self._next_id = 1

    def add(self, email="alice@x.com", password="correct123", role="CUSTOMER", **fields):
        record = AccountRecord(
            id=self._next_id,
            email=email,
            role=role,
            password_hash=hash_password(password, rounds=self.rounds) if password else None,
            **fields,
        )
        self.rows[record.id] = record
        self._next_id += 1
        return record

    def get(self, account_id):
        return self.rows[account_id]

    def get_by_email(self, email):
        self.lookups += 1
        for row in self.rows.values():
            if row.email.lower() == email.lower():
                return row
        return None

    def get_by_id(self, account_id):
        self.lookups += 1
        return self.rows.get(account_id)

    def record_failure(self, account_id, now, max_attempts, lockout):
        self.writes.append(("failure", account_id))
        if self.fail_writes:
            raise InfrastructureError("store down")
        row = self.rows[account_id]
        attempts = row.failed_login_attempts + 1
        lockout_until = now + lockout if attempts >= max_attempts else row.lockout_until
        self.rows[account_id] = replace(row, failed_login_attempts=attempts, lockout_until=lockout_until)
        return attempts, lockout_until

    def reset_failures(self, account_id, now=None):
        self.writes.append(("reset", account_id))
        if self.fail_writes:
            raise InfrastructureError("store down")
        row = self.rows[account_id]
        self.rows[account_id] = replace(row, failed_login_attempts=0, lockout_until=None)

    def claim_totp_step(self, account_id, step):
        row = self.rows[account_id]
        if row.last_totp_step is not None and row.last_totp_step >= step:
            return False
        self.rows[account_id] = replace(row, last_totp_step=step)
        return True


class InMemoryAuditSink:
    def __init__(self, fail=False):
        self.events = []
        self.fail = fail
        self.attempted = 0

    def append(self, event):
        self.attempted += 1
        if self.fail:
            raise InfrastructureError("audit down")
        self.events.append(event)

    @property
    def actions(self):
        return [e.action for e in self.events]


class InMemoryChallengeStore:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def create(self, user_id, surface, ttl, now, ip=None, user_agent=None):
        token = secrets.token_urlsafe(16)
        self.rows[token] = {
            "id": self._next_id,
            "user_id": user_id,
            "surface": surface,
            "expires_at": now + ttl,
            "consumed": False,
            "attempts": 0,
        }
        self._next_id += 1
        return token, now + ttl

    def _by_id(self, challenge_id):
        for row in self.rows.values():
            if row["id"] == challenge_id:
                return row
        return None

    def find_active(self, token, surface, now):
        row = self.rows.get(token)
        if not row or row["consumed"] or row["surface"] != surface or row["expires_at"] <= now:
            return None
        return ActiveChallenge(
            id=row["id"],
            user_id=row["user_id"],
            surface=row["surface"],
            expires_at=row["expires_at"],
            attempts=row["attempts"],
        )

    def register_failure(self, challenge_id, max_attempts, now):
        row = self._by_id(challenge_id)
        row["attempts"] += 1
        if row["attempts"] >= max_attempts:
            row["consumed"] = True
        return row["attempts"]

    def consume(self, challenge_id, now):
        row = self._by_id(challenge_id)
        if row is None or row["consumed"]:
            return False
        row["consumed"] = True
        return True


def wrong_code(secret):
    """A 6-digit code that is not accepted for ``secret`` right now (window of 1)."""
    totp = pyotp.TOTP(secret)
    now = time.time()
    accepted = {totp.at(now + offset) for offset in (-30, 0, 30)}
    for candidate in range(1000000):
        code = f"{candidate:06d}"
        if code not in accepted:
            return code
