"""
Resume delivery by email. Explicit SMTP settings are preferred; a Gmail app password is the fallback.
Raises DeliveryFailure on any problem; callers treat delivery as best-effort.
"""
import html
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path

from backend.app.core.config import GMAIL_SMTP_HOST, GMAIL_SMTP_PORT, MAIL_DEFAULT_FROM, settings
from backend.app.core.exceptions import DeliveryFailure
from backend.app.core.logging_config import get_logger
from backend.app.schemas.resume import resolve_template_id

logger = get_logger("services.mailer")


@dataclass
class SmtpConfig:
    host: str
    port: int
    user: str
    password: str
    use_ssl: bool
    sender: str


def safe_filename(name: str = "resume") -> str:
    """'Jane O'Doe' -> 'Jane_ODoe'"""
    cleaned = re.sub(r"[^\w\s\-.]", "", str(name or "resume"))
    return re.sub(r"\s+", "_", cleaned.strip()) or "resume"


def smtp_config() -> SmtpConfig | None:
    """Explicit SMTP settings first, then Gmail. None when neither is configured."""
    if settings.smtp_host and settings.smtp_user and settings.smtp_password:
        return SmtpConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_ssl=settings.smtp_use_ssl,
            sender=settings.smtp_from or settings.smtp_user,
        )
    if settings.email_user and settings.email_pass:
        return SmtpConfig(
            host=GMAIL_SMTP_HOST,
            port=GMAIL_SMTP_PORT,
            user=settings.email_user,
            password=settings.email_pass,
            use_ssl=True,
            sender=settings.smtp_from or settings.email_user,
        )
    return None


def build_resume_email(to: str, pdf_path: Path, name: str, template: str, sender: str) -> EmailMessage:
    display = name or "Resume"
    msg = EmailMessage()
    msg["Subject"] = f"Your Resume ( {template} ) - {display}"
    msg["From"] = sender or MAIL_DEFAULT_FROM
    msg["To"] = to
    msg.set_content(
        f"Hi {name or ''},\n\n"
        f"Attached is your resume (template: {template}).\n\n"
        "Thanks for using Resume Builder!\n"
    )
    msg.add_alternative(
        f"<p>Hi {html.escape(name or '')},</p>\n"
        f"<p>Attached is your resume (template: <strong>{template}</strong>).</p>\n"
        "<p>Thanks for using <strong>Resume Builder</strong>!</p>",
        subtype="html",
    )
    msg.add_attachment(
        pdf_path.read_bytes(),
        maintype="application",
        subtype="pdf",
        filename=f"{safe_filename(name)}_{template}_Resume.pdf",
    )
    return msg


def send_resume_email(to: str, pdf_path: Path, name: str, template: str | None = None) -> str:
    """Send the rendered PDF as an attachment. Returns the Message-ID header (may be empty)."""
    if not to:
        raise DeliveryFailure("no-recipient")
    if not pdf_path or not Path(pdf_path).exists():
        raise DeliveryFailure(f"pdf-not-found: {pdf_path}")
    config = smtp_config()
    if config is None:
        raise DeliveryFailure(
            "no-mail-config: set SMTP_HOST/SMTP_USER/SMTP_PASSWORD or EMAIL_USER/EMAIL_PASS"
        )

    template = resolve_template_id(template)
    msg = build_resume_email(to, Path(pdf_path), name, template, config.sender)

    try:
        if config.use_ssl:
            with smtplib.SMTP_SSL(config.host, config.port, timeout=settings.http_request_timeout) as server:
                server.login(config.user, config.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(config.host, config.port, timeout=settings.http_request_timeout) as server:
                server.starttls()
                server.login(config.user, config.password)
                server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise DeliveryFailure(f"SMTP send failed: {e}") from e

    logger.info("Resume email sent to=%s template=%s", to, template)
    return msg.get("Message-ID", "")
