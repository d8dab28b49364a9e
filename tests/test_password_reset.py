"""
Tests for the password reset flow
"""

import pytest

from vault_banking.password_reset import ResetState, hash_token
from vault_banking.exceptions import (
    AccountNotFound, InvalidCredentials, InvalidOrExpiredToken, MissingFields
)
from vault_banking.system import BankingSystem

from conftest import RecordingMailer, make_config


@pytest.fixture
def account(system):
    return system.identity.register("Jane", "Doe", "555-0100", "jane@example.com", "old-password")


class TestRequestReset:
    """Test issuing reset tokens"""

    def test_request_stores_digest_and_mails_link(self, system, account, mailer, clock):
        ticket = system.password_reset.request_reset("jane@example.com")

        assert len(ticket.token) == 64
        stored = system.accounts.get(account.id)
        assert stored.reset_token_hash == hash_token(ticket.token)
        assert stored.reset_token_hash != ticket.token
        assert stored.reset_expires_at == ticket.expires_at
        assert (ticket.expires_at - clock()).total_seconds() == 15 * 60

        message = mailer.of_kind("password_reset")[-1]
        assert message.to == "jane@example.com"
        assert f"http://frontend.test/reset-password/{ticket.token}" in message.body
        assert mailer.last_reset_token() == ticket.token

    def test_unknown_email(self, system):
        with pytest.raises(AccountNotFound) as exc_info:
            system.password_reset.request_reset("nobody@example.com")
        assert exc_info.value.status_code == 404

    def test_blank_email(self, system):
        with pytest.raises(MissingFields):
            system.password_reset.request_reset("  ")

    def test_email_lookup_ignores_case(self, system, account):
        ticket = system.password_reset.request_reset("JANE@example.com")
        assert ticket.account_id == account.id

    def test_state_transitions(self, system, account, clock):
        flow = system.password_reset
        assert flow.reset_state(system.accounts.get(account.id)) == ResetState.NO_PENDING_RESET

        flow.request_reset("jane@example.com")
        assert flow.reset_state(system.accounts.get(account.id)) == ResetState.RESET_REQUESTED

        clock.advance(minutes=15)
        assert flow.reset_state(system.accounts.get(account.id)) == ResetState.EXPIRED


class TestResolveReset:
    """Test redeeming reset tokens"""

    def test_reset_replaces_password(self, system, account, mailer):
        token = system.password_reset.request_reset("jane@example.com").token

        system.password_reset.resolve_reset(token, "new-password")

        stored = system.accounts.get(account.id)
        assert stored.reset_token_hash is None
        assert stored.reset_expires_at is None
        assert stored.activity_log[0].action == "Password reset"
        assert system.identity.login("jane@example.com", "new-password").account.id == account.id
        with pytest.raises(InvalidCredentials):
            system.identity.login("jane@example.com", "old-password")

        confirmation = mailer.of_kind("password_reset_confirmation")[-1]
        assert "new-password" not in confirmation.body

    def test_token_is_single_use(self, system, account):
        token = system.password_reset.request_reset("jane@example.com").token
        system.password_reset.resolve_reset(token, "first")

        with pytest.raises(InvalidOrExpiredToken):
            system.password_reset.resolve_reset(token, "second")
        assert system.identity.login("jane@example.com", "first")

    def test_token_expires_after_window(self, system, account, clock):
        token = system.password_reset.request_reset("jane@example.com").token
        clock.advance(minutes=15, seconds=1)

        with pytest.raises(InvalidOrExpiredToken) as exc_info:
            system.password_reset.resolve_reset(token, "new-password")
        assert exc_info.value.message == "Invalid or expired token"
        assert system.identity.login("jane@example.com", "old-password")

    def test_expiry_boundary_is_exclusive(self, system, account, clock):
        token = system.password_reset.request_reset("jane@example.com").token
        clock.advance(minutes=15)
        with pytest.raises(InvalidOrExpiredToken):
            system.password_reset.resolve_reset(token, "new-password")

    def test_token_valid_just_before_expiry(self, system, account, clock):
        token = system.password_reset.request_reset("jane@example.com").token
        clock.advance(minutes=14, seconds=59)
        system.password_reset.resolve_reset(token, "new-password")

    def test_new_request_invalidates_previous_token(self, system, account):
        first = system.password_reset.request_reset("jane@example.com").token
        second = system.password_reset.request_reset("jane@example.com").token
        assert first != second

        with pytest.raises(InvalidOrExpiredToken):
            system.password_reset.resolve_reset(first, "new-password")
        system.password_reset.resolve_reset(second, "new-password")

    @pytest.mark.parametrize("token", ["", "deadbeef", "0" * 64])
    def test_unknown_tokens(self, system, account, token):
        system.password_reset.request_reset("jane@example.com")
        with pytest.raises(InvalidOrExpiredToken):
            system.password_reset.resolve_reset(token, "new-password")

    def test_missing_new_password(self, system, account):
        token = system.password_reset.request_reset("jane@example.com").token
        with pytest.raises(MissingFields):
            system.password_reset.resolve_reset(token, "")
        assert system.accounts.get(account.id).has_pending_reset


class TestResetMailFailures:
    """Mail delivery is best effort"""

    def test_mail_failure_does_not_roll_back_reset(self, clock, fast_hasher):
        mailer = RecordingMailer()
        system = BankingSystem(make_config(), mailer=mailer, hasher=fast_hasher, clock=clock)
        account = system.identity.register("Jane", "Doe", "555-0100", "jane@example.com", "old")

        mailer.fail = True
        ticket = system.password_reset.request_reset("jane@example.com")
        assert system.accounts.get(account.id).reset_token_hash == hash_token(ticket.token)

        system.password_reset.resolve_reset(ticket.token, "new")
        assert system.identity.login("jane@example.com", "new")
        system.close()
