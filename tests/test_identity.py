"""
Tests for registration, login and session resolution
"""

import pytest
from decimal import Decimal
from itertools import chain, repeat
from unittest.mock import patch

from vault_banking.accounts import AccountRole
from vault_banking.identity import IdentityService, LOGIN_ACTIVITY, generate_account_number
from vault_banking.security import TokenSigner
from vault_banking.exceptions import (
    AccountNotFound, AccountNumberExhausted, DuplicateEmail, InvalidCredentials,
    InvalidSession, MissingFields
)
from vault_banking.system import BankingSystem

from conftest import make_config


def identity_with_numbers(system, numbers, max_attempts=5):
    """Identity service sharing the system's stores but drawing numbers from ``numbers``"""
    source = iter(numbers)
    return IdentityService(
        system.storage, system.accounts, system.locks, system.hasher, system.signer,
        system.notifier, account_number_max_attempts=max_attempts,
        number_generator=lambda: next(source)
    )


class TestAccountNumbers:
    """Test account number generation"""

    def test_format(self):
        for _ in range(200):
            number = generate_account_number()
            assert len(number) == 10
            assert number.isdigit()
            assert number[0] != "0"


class TestRegister:
    """Test account registration"""

    def test_register_creates_empty_account(self, system, mailer):
        account = system.identity.register("Jane", "Doe", "555-0100", "jane@example.com", "pw")

        assert len(account.account_number) == 10
        assert account.balance == Decimal("0")
        assert account.role == AccountRole.USER
        assert account.password_hash != "pw"
        assert system.hasher.verify("pw", account.password_hash)
        assert system.accounts.get(account.id) == account

        welcome = mailer.of_kind("welcome")[-1]
        assert welcome.to == "jane@example.com"
        assert account.account_number in welcome.body
        assert "pw" not in welcome.body.split()

    @pytest.mark.parametrize("missing", ["first_name", "last_name", "phone", "email", "secret"])
    def test_missing_fields(self, system, missing):
        fields = dict(first_name="Jane", last_name="Doe", phone="555", email="j@example.com", secret="pw")
        fields[missing] = "  " if missing != "secret" else ""
        with pytest.raises(MissingFields) as exc_info:
            system.identity.register(**fields)
        assert exc_info.value.message == "All fields are required"

    def test_duplicate_email(self, system):
        system.identity.register("Jane", "Doe", "555", "jane@example.com", "pw")
        with pytest.raises(DuplicateEmail) as exc_info:
            system.identity.register("Janet", "Doe", "556", "jane@example.com", "pw")
        assert exc_info.value.message == "User already exists"

    def test_duplicate_email_differing_in_case(self, system):
        system.identity.register("Jane", "Doe", "555", "jane@example.com", "pw")
        with pytest.raises(DuplicateEmail):
            system.identity.register("Jane", "Doe", "555", "Jane@Example.COM", "pw")

    def test_case_sensitive_policy_allows_case_variants(self, mailer, clock, fast_hasher):
        system = BankingSystem(make_config(email_case_sensitive=True),
                               mailer=mailer, hasher=fast_hasher, clock=clock)
        system.identity.register("Jane", "Doe", "555", "jane@example.com", "pw")
        system.identity.register("Jane", "Doe", "555", "Jane@example.com", "pw")
        assert len(system.identity.list_users()) == 2
        system.close()

    def test_account_number_collision_is_retried(self, system):
        first = identity_with_numbers(system, ["1111111111"]).register(
            "A", "A", "1", "a@example.com", "pw")
        second = identity_with_numbers(system, ["1111111111", "1111111111", "2222222222"]).register(
            "B", "B", "2", "b@example.com", "pw")

        assert first.account_number == "1111111111"
        assert second.account_number == "2222222222"

    def test_account_number_retries_are_bounded(self, system):
        identity_with_numbers(system, ["1111111111"]).register("A", "A", "1", "a@example.com", "pw")
        service = identity_with_numbers(system, chain(repeat("1111111111", 3), ["2222222222"]), max_attempts=3)

        with pytest.raises(AccountNumberExhausted) as exc_info:
            service.register("B", "B", "2", "b@example.com", "pw")
        assert exc_info.value.status_code == 409
        assert system.accounts.get_by_email("b@example.com") is None

    def test_register_admin(self, system):
        admin = system.identity.register("Ada", "Admin", "555", "admin@example.com", "pw",
                                         role=AccountRole.ADMIN)
        assert admin.is_admin
        assert system.identity.list_users() == []


class TestLogin:
    """Test login and session tokens"""

    def setup_method(self):
        self.email = "jane@example.com"

    def test_login_records_activity_and_issues_token(self, system, clock):
        account = system.identity.register("Jane", "Doe", "555", self.email, "pw")

        session = system.identity.login(self.email, "pw")

        assert session.account.id == account.id
        assert session.account.activity_log[0].action == LOGIN_ACTIVITY
        assert session.account.activity_log[0].timestamp == clock()
        assert system.identity.authenticate(session.token).id == account.id

    def test_login_is_case_insensitive_on_email(self, system):
        system.identity.register("Jane", "Doe", "555", self.email, "pw")
        assert system.identity.login("JANE@EXAMPLE.COM", "pw")

    @pytest.mark.parametrize("email,secret", [
        ("jane@example.com", "wrong"),
        ("nobody@example.com", "pw"),
        ("", "pw"),
        ("jane@example.com", ""),
    ])
    def test_invalid_credentials_share_one_message(self, system, email, secret):
        system.identity.register("Jane", "Doe", "555", self.email, "pw")
        with pytest.raises(InvalidCredentials) as exc_info:
            system.identity.login(email, secret)
        assert exc_info.value.message == "Invalid email or password"
        assert exc_info.value.status_code == 401

    def test_repeated_logins_keep_ten_entries(self, system):
        system.identity.register("Jane", "Doe", "555", self.email, "pw")
        for _ in range(12):
            session = system.identity.login(self.email, "pw")
        assert len(session.account.activity_log) == 10


class TestSessions:
    """Test bearer token resolution"""

    def test_invalid_token(self, system):
        with pytest.raises(InvalidSession):
            system.identity.authenticate("garbage")
        with pytest.raises(InvalidSession):
            system.identity.authenticate("")

    def test_token_for_unknown_account(self, system):
        token = system.signer.issue("no-such-account")
        with pytest.raises(InvalidSession):
            system.identity.authenticate(token)

    def test_token_signed_with_other_key(self, system):
        account = system.identity.register("Jane", "Doe", "555", "jane@example.com", "pw")
        token = TokenSigner("some-other-signing-key-0123456789abcdef").issue(account.id)
        with pytest.raises(InvalidSession):
            system.identity.authenticate(token)


class TestProfileAndOperatorTools:
    """Test profile lookups and the operator password tool"""

    def test_get_profile(self, system):
        account = system.identity.register("Jane", "Doe", "555", "jane@example.com", "pw")
        assert system.identity.get_profile(account.id).email == "jane@example.com"
        with pytest.raises(AccountNotFound):
            system.identity.get_profile("missing")

    def test_set_password(self, system):
        system.identity.register("Ada", "Admin", "555", "admin@example.com", "old",
                                 role=AccountRole.ADMIN)
        system.password_reset.request_reset("admin@example.com")

        account = system.identity.set_password("admin@example.com", "new")

        assert not account.has_pending_reset
        assert system.identity.login("admin@example.com", "new")

    def test_set_password_unknown_email(self, system):
        with pytest.raises(AccountNotFound):
            system.identity.set_password("nobody@example.com", "new")

    def test_set_password_account_vanishes_before_write(self, system):
        system.identity.register("Ada", "Admin", "555", "admin@example.com", "old",
                                 role=AccountRole.ADMIN)
        with patch.object(system.accounts, "get", return_value=None):
            with pytest.raises(AccountNotFound):
                system.identity.set_password("admin@example.com", "new")
        assert system.identity.login("admin@example.com", "old")
