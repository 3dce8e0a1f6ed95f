"""Email notification service.

Sends the password reset link over SMTP. Nothing is sent (and nothing is
logged to ``notification_logs``) while SMTP credentials are unset.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from html import escape

from sqlalchemy.orm import Session

from ..auth.models import User
from ..config import settings
from .models import NotificationLog

logger = logging.getLogger(__name__)

_SENDER_NAME = "CV Builder"


def _sender_address() -> str:
    return settings.mail_from or settings.smtp_user


def reset_link(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/reset-password/{token}"


# ── Email building ─────────────────────────────────────────────────────


def _build_reset_email(user: User, token: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")

    sender = _sender_address()
    msg["From"] = formataddr((_SENDER_NAME, sender))
    msg["To"] = user.email
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=sender.split("@")[-1] if "@" in sender else "local")
    msg["Subject"] = "Reset your CV Builder password"

    link = reset_link(token)
    minutes = settings.password_reset_ttl_minutes

    text_body = (
        f"Hello {user.name},\n\n"
        f"We received a request to reset your CV Builder password.\n"
        f"Open the link below to choose a new one (valid for {minutes} minutes):\n\n"
        f"  {link}\n\n"
        f"If you did not ask for this, you can ignore this email.\n"
    )

    html_body = f"""\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Password reset</title></head>
<body style="margin:0; padding:24px; background-color:#f4f4f5; font-family:Arial,Helvetica,sans-serif;">
  <table role="presentation" width="600" cellpadding="0" cellspacing="0"
         style="background-color:#ffffff; border-radius:8px; margin:0 auto;">
    <tr><td style="background-color:#2563eb; padding:20px 32px; border-radius:8px 8px 0 0;">
      <h1 style="margin:0; color:#ffffff; font-size:20px;">Password reset</h1>
    </td></tr>
    <tr><td style="padding:32px; color:#374151; font-size:15px; line-height:1.6;">
      <p>Hello {escape(user.name or "")},</p>
      <p>We received a request to reset your password. The link is valid for {minutes} minutes.</p>
      <p><a href="{escape(link)}" style="color:#2563eb;">Choose a new password</a></p>
      <p style="color:#9ca3af; font-size:12px;">If you did not ask for this, you can ignore this email.</p>
    </td></tr>
  </table>
</body>
</html>"""

    msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


# ── Email sending ──────────────────────────────────────────────────────


def _send_email(msg: MIMEMultipart) -> bool:
    """Send an email via SMTP with TLS. Returns True on success."""
    if not settings.smtp_user or not settings.smtp_password:
        logger.debug("SMTP not configured, skipping email send")
        return False

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email notification")
        return False


def send_password_reset_email(db: Session, user: User, token: str) -> bool:
    """Email the reset link to ``user``. Returns True when the email went out."""
    msg = _build_reset_email(user, token)
    if not _send_email(msg):
        return False

    db.add(
        NotificationLog(
            user_id=user.id,
            notification_type="password_reset",
            recipient=user.email,
            subject=msg["Subject"],
        )
    )
    db.flush()
    logger.info("Sent password reset email to user %s", user.id)
    return True
