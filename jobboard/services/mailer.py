# jobboard/services/mailer.py
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from fastapi.concurrency import run_in_threadpool

from jobboard.core.config import Settings

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    pass


class Mailer(Protocol):
    async def send(self, to: str, subject: str, text: str, html: str = "") -> None:
        ...


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.use_ssl = settings.SMTP_USE_SSL
        self.timeout = settings.SMTP_TIMEOUT_SEC
        self.sender = settings.MAIL_FROM

    def _build(self, to: str, subject: str, text: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        if not self.host:
            raise MailDeliveryError("SMTP not configured")
        try:
            if self.use_ssl:
                smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            with smtp:
                if not self.use_ssl:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                refused = smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(str(exc)) from exc
        if refused:
            raise MailDeliveryError(f"recipients refused: {', '.join(refused)}")

    async def send(self, to: str, subject: str, text: str, html: str = "") -> None:
        msg = self._build(to, subject, text, html)
        await run_in_threadpool(self._send_sync, msg)
        logger.info("Mail sent to %s (%s)", to, subject)


class ConsoleMailer:
    """Development backend: writes the message to the log instead of sending it."""

    async def send(self, to: str, subject: str, text: str, html: str = "") -> None:
        logger.info("Mail to %s: %s\n%s", to, subject, text)


def build_mailer(settings: Settings) -> Mailer:
    if settings.MAIL_BACKEND == "smtp":
        return SmtpMailer(settings)
    return ConsoleMailer()


_HTML_FRAME = """\
<html>
<body style="font-family: Arial, sans-serif; background-color: #f4f4f4; margin: 0; padding: 0;">
  <div style="background-color: #ffffff; margin: 50px auto; padding: 20px; border-radius: 10px; max-width: 600px;">
    <h1 style="background-color: #4CAF50; color: white; padding: 10px 0; text-align: center;">{title}</h1>
    <p>Dear {name},</p>
    <p>{lead}</p>
    <p><a href="{link}" style="background-color: #4CAF50; color: white; padding: 15px 25px; text-decoration: none; border-radius: 5px;">{button}</a></p>
    <p>{ignore}</p>
    <p>Best regards,<br>Job Search app</p>
  </div>
</body>
</html>"""


def confirmation_email(name: str, link: str) -> tuple[str, str, str]:
    """Return ``(subject, text, html)`` for the sign-up confirmation mail."""
    lead = ("Thank you for signing up with us! To complete your registration, "
            "please click the link below to confirm your account:")
    ignore = "If you did not sign up for this account, please ignore this email."
    text = f"Dear {name},\n{lead}\n{link}\n{ignore}\nBest regards,\nJob Search app"
    html = _HTML_FRAME.format(
        title="Welcome to Job Search app", name=name, lead=lead, link=link,
        button="Confirm Account", ignore=ignore,
    )
    return "Confirm Your Account", text, html


def reset_password_email(name: str, link: str) -> tuple[str, str, str]:
    lead = "To reset your password, please click the link below:"
    ignore = "If you did not request a password reset, please ignore this email."
    text = f"Dear {name},\n{lead}\n{link}\n{ignore}\nBest regards,\nJob Search app"
    html = _HTML_FRAME.format(
        title="Reset Your Password", name=name, lead=lead, link=link,
        button="Reset Password", ignore=ignore,
    )
    return "Reset Your Password", text, html
