import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr

from universe.config import settings

logger = logging.getLogger(__name__)


VERIFICATION_SUBJECT = "Your UniVerse verification code"
VERIFICATION_BODY = (
    "Hi {name},\n\n"
    "Your verification code is: {code}\n"
    "It expires in {ttl} minutes.\n\n"
    "{sender}"
)

PIN_RECOVERY_SUBJECT = "Your UniVerse PIN"
PIN_RECOVERY_BODY = (
    "Hi {name},\n\n"
    "You asked us to recover your PIN. Your PIN is: {pin}\n\n"
    "{sender}"
)


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the SMTP server."""


def _missing_settings() -> list[str]:
    required = ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "FROM_EMAIL")
    return [key for key in required if not getattr(settings, key)]


def send_email(to_email: str, subject: str, body: str) -> None:
    missing = _missing_settings()
    if missing:
        logger.error("SMTP not configured, missing: %s", ", ".join(missing))
        raise EmailDeliveryError(f"Email is not configured. Missing: {', '.join(missing)}")

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.EMAIL_SENDER_NAME, settings.FROM_EMAIL))
    msg["To"] = to_email

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
            server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Failed to send '%s' to %s", subject, to_email)
        raise EmailDeliveryError(str(exc)) from exc

    logger.info("Sent '%s' to %s", subject, to_email)


def send_verification_code(to_email: str, name: str, code: str) -> None:
    body = VERIFICATION_BODY.format(
        name=name,
        code=code,
        ttl=settings.OTP_TTL_MINUTES,
        sender=settings.EMAIL_SENDER_NAME,
    )
    send_email(to_email, VERIFICATION_SUBJECT, body)


def send_pin_recovery(to_email: str, name: str, pin: str) -> None:
    body = PIN_RECOVERY_BODY.format(name=name, pin=pin, sender=settings.EMAIL_SENDER_NAME)
    send_email(to_email, PIN_RECOVERY_SUBJECT, body)
