"""Outgoing invite and password-reset emails. Fire-and-forget: failures are logged, never raised."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

INVITE_SUBJECT = "Invitation à rejoindre OrientaVision"
RESET_SUBJECT = "Réinitialisation de votre mot de passe"


def redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def is_smtp_configured(settings: Settings) -> bool:
    return bool(settings.SMTP_HOST and settings.SMTP_HOST.strip())


def _build_message(settings: Settings, to_email: str, subject: str, text: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")
    return msg


def _deliver(settings: Settings, msg: EmailMessage) -> None:
    password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
    context = ssl.create_default_context()
    if settings.SMTP_USE_SSL:
        server: smtplib.SMTP = smtplib.SMTP_SSL(
            settings.SMTP_HOST, settings.SMTP_PORT, context=context, timeout=settings.SMTP_TIMEOUT_SEC
        )
    else:
        server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SEC)
    with server as smtp:
        if not settings.SMTP_USE_SSL:
            smtp.starttls(context=context)
        if settings.SMTP_USER and password:
            smtp.login(settings.SMTP_USER, password)
        smtp.send_message(msg)


def _send(settings: Settings, to_email: str, subject: str, text: str, html: str, kind: str) -> bool:
    if not is_smtp_configured(settings):
        # Dev mode: nothing leaves the process; body is not logged since it carries a secret.
        logger.info(
            "Email not sent (SMTP not configured)",
            extra={"email_kind": kind, "to": redact_email(to_email)},
        )
        return True
    try:
        _deliver(settings, _build_message(settings, to_email, subject, text, html))
    except (smtplib.SMTPException, OSError) as e:
        logger.error(
            "Email delivery failed",
            extra={"email_kind": kind, "to": redact_email(to_email), "reason": type(e).__name__},
        )
        return False
    logger.info("Email sent", extra={"email_kind": kind, "to": redact_email(to_email)})
    return True


def send_invite(email: str, code: str, settings: Settings | None = None) -> bool:
    """Email an invite code. Returns False on delivery failure (already logged)."""
    settings = settings or get_settings()
    text = (
        "Vous avez été invité à rejoindre OrientaVision.\n"
        f"Votre code d'invitation est : {code}\n"
        f"Créez votre compte sur {settings.APP_URL}\n"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; color: #333;">'
        "<h2>Bienvenue sur OrientaVision</h2>"
        "<p>Vous avez été invité à rejoindre la plateforme.</p>"
        f"<p>Votre code d'invitation est : <strong>{code}</strong></p>"
        f'<p>Rendez-vous sur <a href="{settings.APP_URL}">OrientaVision</a> pour créer votre compte.</p>'
        "</div>"
    )
    return _send(settings, email, INVITE_SUBJECT, text, html, "invite")


def reset_link(token: str, settings: Settings) -> str:
    return f"{settings.APP_URL}/reset-password?{urlencode({'token': token})}"


def send_reset(email: str, token: str, settings: Settings | None = None) -> bool:
    """Email a password reset link. Returns False on delivery failure (already logged)."""
    settings = settings or get_settings()
    link = reset_link(token, settings)
    minutes = settings.RESET_TOKEN_EXPIRE_MINUTES
    text = (
        "Vous avez demandé à réinitialiser votre mot de passe.\n"
        f"Lien : {link}\n"
        f"Ce lien est valide pendant {minutes} minutes.\n"
        "Si vous n'êtes pas à l'origine de cette demande, ignorez cet email.\n"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; color: #333;">'
        "<h2>Demande de réinitialisation</h2>"
        "<p>Vous avez demandé à réinitialiser votre mot de passe.</p>"
        f'<p><a href="{link}">Réinitialiser mon mot de passe</a></p>'
        f"<p>Ce lien est valide pendant {minutes} minutes.</p>"
        "<p>Si vous n'êtes pas à l'origine de cette demande, ignorez cet email.</p>"
        "</div>"
    )
    return _send(settings, email, RESET_SUBJECT, text, html, "reset")
