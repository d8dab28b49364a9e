"""
Shared test fixtures: recording mailer, controllable clock and a wired
in-memory banking system
"""

import re
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from vault_banking.config import VaultConfig
from vault_banking.notifications import Mailer, MailMessage
from vault_banking.security import PasswordHasher
from vault_banking.system import BankingSystem


class RecordingMailer(Mailer):
    """Keeps every message instead of sending it"""

    def __init__(self, fail: bool = False):
        self.sent: List[MailMessage] = []
        self.fail = fail

    def send(self, message: MailMessage) -> bool:
        if self.fail:
            raise ConnectionError("mail relay unreachable")
        self.sent.append(message)
        return True

    def of_kind(self, kind: str) -> List[MailMessage]:
        return [m for m in self.sent if m.kind == kind]

    def last_reset_token(self) -> str:
        body = self.of_kind("password_reset")[-1].body
        return re.search(r"/reset-password/([0-9a-f]+)", body).group(1)


class FakeClock:
    """Timezone-aware clock that only moves when told to"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_config(**overrides) -> VaultConfig:
    settings = dict(
        database_url="memory://",
        jwt_secret="test-signing-key-0123456789abcdef0123",
        mail_async=False,
        frontend_url="http://frontend.test"
    )
    settings.update(overrides)
    return VaultConfig(**settings)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fast_hasher():
    return PasswordHasher(n=1024)


@pytest.fixture
def system(mailer, clock, fast_hasher):
    banking = BankingSystem(make_config(), mailer=mailer, hasher=fast_hasher, clock=clock)
    yield banking
    banking.close()
