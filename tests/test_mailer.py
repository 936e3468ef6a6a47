"""Tests for OTP mail delivery."""

import smtplib
from unittest.mock import patch

import pytest

from taskflow.services.mailer import OTP_SUBJECT, MailDeliveryError, Mailer


def _mailer(**overrides):
    options = {
        "server": "smtp.example.com",
        "port": 587,
        "username": "robot@example.com",
        "password": "app-password",
        "sender": '"TaskFlow" <robot@example.com>',
    }
    options.update(overrides)
    return Mailer(**options)


class TestMailer:
    def test_suppressed_send_goes_to_outbox(self):
        mailer = _mailer(suppress_send=True)

        with patch("taskflow.services.mailer.smtplib.SMTP") as smtp:
            mailer.send_otp("user@example.com", "123456", 10)

        smtp.assert_not_called()
        assert len(mailer.outbox) == 1
        message = mailer.outbox[0]
        assert message["Subject"] == OTP_SUBJECT
        assert message["To"] == "user@example.com"
        assert "123456" in message.get_body(preferencelist=("plain",)).get_content()
        assert "123456" in message.get_body(preferencelist=("html",)).get_content()
        assert "10 minutes" in message.get_body(preferencelist=("plain",)).get_content()

    def test_send_uses_starttls_and_login(self):
        mailer = _mailer()

        with patch("taskflow.services.mailer.smtplib.SMTP") as smtp:
            mailer.send_otp("user@example.com", "123456", 10)

        smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        conn = smtp.return_value.__enter__.return_value
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("robot@example.com", "app-password")
        conn.send_message.assert_called_once()
        assert mailer.outbox == []

    def test_smtp_error_raises_delivery_error(self):
        mailer = _mailer()

        with patch("taskflow.services.mailer.smtplib.SMTP") as smtp:
            smtp.return_value.__enter__.return_value.login.side_effect = (
                smtplib.SMTPAuthenticationError(535, b"bad credentials")
            )
            with pytest.raises(MailDeliveryError):
                mailer.send_otp("user@example.com", "123456", 10)

    def test_connection_error_raises_delivery_error(self):
        mailer = _mailer()

        with patch("taskflow.services.mailer.smtplib.SMTP", side_effect=ConnectionRefusedError()):
            with pytest.raises(MailDeliveryError):
                mailer.send_otp("user@example.com", "123456", 10)


def test_send_otp_endpoint_reports_mail_failure(client, services):
    services.mailer = _mailer()

    with patch("taskflow.services.mailer.smtplib.SMTP", side_effect=OSError("unreachable")):
        response = client.post(
            "/api/send-otp",
            json={"email": "new@example.com", "password": "password123", "name": "New"},
        )

    assert response.status_code == 500
    assert response.get_json()["message"] == "Failed to send OTP email"
    assert "unreachable" not in response.get_data(as_text=True)
