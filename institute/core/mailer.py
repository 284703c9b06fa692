"""
Verification mail delivery
Runs inside FastAPI BackgroundTasks so signup never waits on SMTP
"""

import logging
import secrets
import smtplib
from datetime import datetime, timedelta
from email.message import EmailMessage
from urllib.parse import urlencode

from institute.core import config

logger = logging.getLogger(__name__)


def new_verification_token() -> tuple:
    """Return (token, expires_at) for a fresh email verification"""
    token = secrets.token_hex(32)
    expires_at = datetime.utcnow() + timedelta(hours=config.VERIFICATION_TOKEN_HOURS)
    return token, expires_at


def build_verification_url(token: str, email: str) -> str:
    query = urlencode({"token": token, "email": email})
    return f"{config.EMAIL_LINK}/api/verify-email?{query}"


def send_verification_email(email: str, name: str, token: str):
    verification_url = build_verification_url(token, email)

    if not config.SMTP_HOST:
        logger.info("SMTP not configured, verification link for %s: %s", email, verification_url)
        return

    message = EmailMessage()
    message["Subject"] = "Verify your email address"
    message["From"] = config.EMAIL_FROM
    message["To"] = email
    message.set_content(
        f"Hello {name},\n\n"
        f"Please verify your email address by opening the link below:\n\n"
        f"{verification_url}\n\n"
        f"This link expires in {config.VERIFICATION_TOKEN_HOURS} hours.\n"
    )

    try:
        with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as smtp:
            smtp.starttls()
            if config.SMTP_USER:
                smtp.login(config.SMTP_USER, config.SMTP_PASSWORD or "")
            smtp.send_message(message)
        logger.info("Verification email sent to %s", email)
    except (smtplib.SMTPException, OSError):
        # Background job: the account already exists, the user can ask for a resend
        logger.exception("Failed to send verification email to %s", email)
