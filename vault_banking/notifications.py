"""
Notification Module

Outbound email for account events: welcome message with the new account
number, password-reset link and password-reset confirmation.

Delivery is best effort. A failed or raising mailer is logged and never
affects the operation that triggered the message.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional
import smtplib

import requests

from .config import VaultConfig
from .logging_config import get_logger, log_action


@dataclass
class MailMessage:
    """A rendered email"""
    to: str
    subject: str
    body: str
    kind: str = "generic"


class Mailer(ABC):
    """Abstract base class for mail transports"""

    @abstractmethod
    def send(self, message: MailMessage) -> bool:
        """Send a message. Returns True if the transport accepted it."""
        pass


class LogMailer(Mailer):
    """Logs message envelopes instead of sending them; the development default"""

    def __init__(self, logger=None):
        self.logger = logger or get_logger("vault.mail")

    def send(self, message: MailMessage) -> bool:
        # Bodies carry reset links, so only the envelope is logged
        log_action(self.logger, "info", f"EMAIL to {message.to}: {message.subject}",
                   action="mail_logged", resource=message.kind)
        return True


class SMTPMailer(Mailer):
    """Sends mail through an SMTP relay"""

    def __init__(
        self,
        host: str,
        port: int = 587,
        sender: str = "no-reply@vault.local",
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 10.0
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def send(self, message: MailMessage) -> bool:
        email = EmailMessage()
        email["From"] = self.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(email)
        return True


class WebhookMailer(Mailer):
    """Posts messages to an HTTP mail relay"""

    def __init__(self, url: str, sender: str, timeout: float = 10.0):
        self.url = url
        self.sender = sender
        self.timeout = timeout

    def send(self, message: MailMessage) -> bool:
        payload = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "body": message.body,
            "kind": message.kind
        }
        response = requests.post(
            self.url,
            json=payload,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"}
        )
        return 200 <= response.status_code < 300


def create_mailer(config: VaultConfig) -> Mailer:
    """Build the mail transport named by ``config.mail_backend``"""
    backend = config.mail_backend.lower()
    if backend == "log":
        return LogMailer()
    if backend == "smtp":
        return SMTPMailer(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.mail_from,
            username=config.smtp_user,
            password=config.smtp_password,
            starttls=config.smtp_starttls,
            timeout=config.mail_timeout
        )
    if backend == "webhook":
        if not config.mail_webhook_url:
            raise ValueError("mail_webhook_url is required for the webhook mail backend")
        return WebhookMailer(config.mail_webhook_url, config.mail_from, config.mail_timeout)
    raise ValueError(f"Unknown mail backend: {config.mail_backend}")


class Notifier:
    """Renders account emails and dispatches them fire-and-forget"""

    def __init__(self, mailer: Mailer, run_async: bool = False, max_workers: int = 2):
        self.mailer = mailer
        self.logger = get_logger("vault.notifications")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mail") if run_async else None

    def dispatch(self, message: MailMessage) -> None:
        """Queue (or send inline) a message; never raises"""
        if self._executor:
            try:
                self._executor.submit(self._deliver, message)
                return
            except RuntimeError:
                # Executor already shut down
                pass
        self._deliver(message)

    def _deliver(self, message: MailMessage) -> bool:
        try:
            accepted = self.mailer.send(message)
        except Exception as e:
            log_action(
                self.logger, "error", f"Mail delivery failed: {e}",
                action="mail_failed", resource=message.kind,
                extra={"to": message.to}, exc_info=True
            )
            return False

        if not accepted:
            log_action(
                self.logger, "warning", "Mail transport rejected message",
                action="mail_rejected", resource=message.kind, extra={"to": message.to}
            )
            return False

        log_action(self.logger, "info", f"Mail sent: {message.subject}",
                   action="mail_sent", resource=message.kind)
        return True

    def welcome(self, to: str, name: str, account_number: str) -> None:
        self.dispatch(MailMessage(
            to=to,
            subject="Welcome to Vault Bank!",
            body=(
                f"Hello {name},\n\n"
                "Your Vault account has been successfully created.\n\n"
                f"Account Number: {account_number}\n"
                f"Email: {to}\n\n"
                "Please keep your account number safe and secure.\n\n"
                "- The Vault Team"
            ),
            kind="welcome"
        ))

    def password_reset_link(self, to: str, name: str, link: str, ttl_minutes: int) -> None:
        self.dispatch(MailMessage(
            to=to,
            subject="Password Reset Request",
            body=(
                f"Hello {name},\n\n"
                "You requested to reset your password. Use the link below to set a new one:\n\n"
                f"{link}\n\n"
                f"This link will expire in {ttl_minutes} minutes.\n"
                "If you didn't request this, please ignore this message."
            ),
            kind="password_reset"
        ))

    def password_reset_confirmation(self, to: str, name: str) -> None:
        self.dispatch(MailMessage(
            to=to,
            subject="Your Password Has Been Reset",
            body=(
                f"Hello {name},\n\n"
                "Your password has been successfully updated.\n"
                "If this wasn't you, please contact our support immediately."
            ),
            kind="password_reset_confirmation"
        ))

    def close(self) -> None:
        if self._executor:
            self._executor.shutdown(wait=True)
