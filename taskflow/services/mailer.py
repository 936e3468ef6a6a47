"""Outbound email for one-time passcodes."""

import logging
import smtplib
from email.message import EmailMessage
from typing import Any

from opentelemetry import trace


logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

OTP_SUBJECT = "Your OTP for TaskFlow - Email Verification"

_OTP_TEXT = """\
Welcome to TaskFlow!

Thank you for signing up for TaskFlow. To complete your registration, use the
following One-Time Password (OTP):

    {otp}

This OTP will expire in {ttl} minutes. Please do not share this code with anyone.
If you didn't request this OTP, please ignore this email.

TaskFlow - Smart Task Productivity Manager
"""

_OTP_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #333; text-align: center;">Welcome to TaskFlow!</h1>
  <p style="color: #666; font-size: 16px;">
    Thank you for signing up for TaskFlow. To complete your registration,
    please use the following One-Time Password (OTP):
  </p>
  <div style="text-align: center; margin: 30px 0;">
    <span style="background-color: #6366f1; color: white; padding: 15px 30px;
                 border-radius: 8px; font-size: 24px; font-weight: bold; letter-spacing: 3px;">
      {otp}
    </span>
  </div>
  <p style="color: #666; font-size: 14px;">
    This OTP will expire in {ttl} minutes. Please do not share this code with anyone.
  </p>
  <p style="color: #666; font-size: 14px;">If you didn't request this OTP, please ignore this email.</p>
  <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
  <p style="color: #999; font-size: 12px; text-align: center;">TaskFlow - Smart Task Productivity Manager</p>
</div>
"""


class MailDeliveryError(Exception):
    """The SMTP server rejected the message or could not be reached."""


class Mailer:
    """SMTP sender with STARTTLS and login.

    With ``suppress_send`` set, messages are appended to :attr:`outbox`
    instead of being delivered.
    """

    def __init__(
        self,
        server: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        sender: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
        suppress_send: bool = False,
    ) -> None:
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.use_tls = use_tls
        self.timeout = timeout
        self.suppress_send = suppress_send
        self.outbox: list[EmailMessage] = []

    @classmethod
    def from_config(cls, config: Any) -> "Mailer":
        return cls(
            server=config["MAIL_SERVER"],
            port=config["MAIL_PORT"],
            username=config["MAIL_USERNAME"],
            password=config["MAIL_PASSWORD"],
            sender=config["MAIL_SENDER"],
            use_tls=config["MAIL_USE_TLS"],
            timeout=config["MAIL_TIMEOUT"],
            suppress_send=config["MAIL_SUPPRESS_SEND"],
        )

    def send_otp(self, email: str, otp: str, ttl_minutes: int) -> None:
        message = EmailMessage()
        message["Subject"] = OTP_SUBJECT
        message["From"] = self.sender
        message["To"] = email
        message.set_content(_OTP_TEXT.format(otp=otp, ttl=ttl_minutes))
        message.add_alternative(_OTP_HTML.format(otp=otp, ttl=ttl_minutes), subtype="html")
        self.send(message)

    def send(self, message: EmailMessage) -> None:
        with tracer.start_as_current_span("mail.send") as span:
            span.set_attribute("mail.suppressed", self.suppress_send)
            if self.suppress_send:
                self.outbox.append(message)
                logger.info("Mail suppressed, queued in outbox for %s", message["To"])
                return

            span.set_attribute("server.address", self.server)
            span.set_attribute("server.port", self.port)
            try:
                with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
                    if self.use_tls:
                        smtp.starttls()
                    if self.username:
                        smtp.login(self.username, self.password)
                    smtp.send_message(message)
            except (smtplib.SMTPException, OSError) as e:
                span.record_exception(e)
                span.set_status(trace.StatusCode.ERROR, type(e).__name__)
                logger.error("Failed to send mail to %s: %s", message["To"], type(e).__name__)
                raise MailDeliveryError("Failed to send OTP email") from e

            logger.info("Mail sent to %s", message["To"])
