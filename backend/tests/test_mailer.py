"""Tests for resume email delivery"""
from unittest.mock import patch

import pytest

from backend.app.core.config import GMAIL_SMTP_HOST, GMAIL_SMTP_PORT, settings
from backend.app.core.exceptions import DeliveryFailure
from backend.app.services.mailer import safe_filename, send_resume_email, smtp_config


@pytest.fixture
def pdf(tmp_path):
    path = tmp_path / "Jane_Doe.pdf"
    path.write_bytes(b"%PDF-1.4 mail")
    return path


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_user", "mailer@example.com")
    monkeypatch.setattr(settings, "smtp_password", "secret")


def test_safe_filename():
    assert safe_filename("Jane O'Doe") == "Jane_ODoe"
    assert safe_filename("") == "resume"
    assert safe_filename("???") == "resume"


def test_no_mail_config(pdf):
    assert smtp_config() is None
    with pytest.raises(DeliveryFailure, match="no-mail-config"):
        send_resume_email("jane@example.com", pdf, "Jane Doe", "template1")


def test_missing_recipient_or_pdf(pdf, tmp_path, smtp_settings):
    with pytest.raises(DeliveryFailure, match="no-recipient"):
        send_resume_email("", pdf, "Jane Doe")
    with pytest.raises(DeliveryFailure, match="pdf-not-found"):
        send_resume_email("jane@example.com", tmp_path / "gone.pdf", "Jane Doe")


def test_explicit_smtp_preferred_over_gmail(monkeypatch, smtp_settings):
    monkeypatch.setattr(settings, "email_user", "me@gmail.com")
    monkeypatch.setattr(settings, "email_pass", "app-password")
    config = smtp_config()
    assert config.host == "smtp.example.com"
    assert config.use_ssl is False


def test_gmail_fallback(monkeypatch):
    monkeypatch.setattr(settings, "email_user", "me@gmail.com")
    monkeypatch.setattr(settings, "email_pass", "app-password")
    config = smtp_config()
    assert (config.host, config.port, config.use_ssl) == (GMAIL_SMTP_HOST, GMAIL_SMTP_PORT, True)
    assert config.sender == "me@gmail.com"


def test_send_over_starttls_with_attachment(pdf, smtp_settings):
    with patch("backend.app.services.mailer.smtplib.SMTP") as smtp:
        send_resume_email("jane@example.com", pdf, "Jane Doe", "unknown-template")
    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer@example.com", "secret")
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "jane@example.com"
    assert msg["Subject"] == "Your Resume ( template1 ) - Jane Doe"
    [attachment] = list(msg.iter_attachments())
    assert attachment.get_filename() == "Jane_Doe_template1_Resume.pdf"
    assert attachment.get_content() == b"%PDF-1.4 mail"


def test_smtp_error_becomes_delivery_failure(pdf, smtp_settings):
    with patch("backend.app.services.mailer.smtplib.SMTP", side_effect=OSError("connection refused")):
        with pytest.raises(DeliveryFailure, match="connection refused"):
            send_resume_email("jane@example.com", pdf, "Jane Doe", "template2")
