import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import Settings
from app.models.appointment import Appointment

logger = logging.getLogger(__name__)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def build_confirmation_html(
    settings: Settings,
    recipient_name: str,
    appointment_date: date,
    appointment_time: str,
    consultation_type: str,
    preferred_country: str,
) -> str:
    """Build HTML body for appointment confirmation."""
    date_str = appointment_date.strftime("%A, %B %d, %Y")
    return f"""
<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">
  <div style="background-color:#2563eb;padding:20px;text-align:center;">
    <h1 style="color:white;margin:0;">{_html_escape(settings.site_name)}</h1>
    <p style="color:#e5e7eb;margin:5px 0;">{_html_escape(settings.site_tagline)}</p>
  </div>
  <div style="padding:30px;background-color:#f8fafc;">
    <h2 style="color:#1e40af;">Appointment Confirmed!</h2>
    <p>Dear {_html_escape(recipient_name)},</p>
    <p>Your appointment has been confirmed. Please find the details below:</p>
    <div style="background-color:white;padding:20px;border-radius:8px;margin:20px 0;">
      <h3 style="color:#2563eb;margin-top:0;">Appointment Details</h3>
      <p><strong>Date:</strong> {date_str}</p>
      <p><strong>Time:</strong> {_html_escape(appointment_time)}</p>
      <p><strong>Consultation Type:</strong> {_html_escape(consultation_type)}</p>
      <p><strong>Preferred Country:</strong> {_html_escape(preferred_country)}</p>
    </div>
    <div style="background-color:#dbeafe;padding:15px;border-radius:8px;margin:20px 0;">
      <h4 style="color:#1e40af;margin-top:0;">Office Address</h4>
      <p style="margin:5px 0;">{_html_escape(settings.office_name)}</p>
      <p style="margin:5px 0;">{_html_escape(settings.office_address)}</p>
      <p style="margin:5px 0;">Phone: {_html_escape(settings.contact_phone)}</p>
    </div>
    <p>Please arrive 10 minutes early. For reschedules, reply to this email at least 24 hours in advance.</p>
    <p>Thank you for choosing {_html_escape(settings.site_name)}!</p>
    <div style="margin-top:30px;padding-top:20px;border-top:1px solid #e5e7eb;">
      <p style="color:#6b7280;font-size:14px;">
        Best regards,<br>
        {_html_escape(settings.site_name)} Team<br>
        Email: {_html_escape(settings.contact_email)}<br>
        Phone: {_html_escape(settings.contact_phone)}
      </p>
    </div>
  </div>
</div>
"""


class Notifier:
    """Outbound mail through the configured SMTP account. All calls block; run them in a threadpool."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def sender(self) -> str:
        return f'"{self.settings.from_name}" <{self.settings.email_user}>'

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.smtp_use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds)
        else:
            server = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds)
        try:
            if not s.smtp_use_ssl:
                server.starttls()
            server.login(s.email_user, s.email_pass)
        except Exception:
            server.close()
            raise
        return server

    def _send(self, to_email: str, subject: str, body: str, subtype: str = "html") -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        if self.settings.reply_to_address:
            msg["Reply-To"] = self.settings.reply_to_address
        msg.attach(MIMEText(body, subtype, "utf-8"))
        with self._connect() as server:
            server.sendmail(self.settings.email_user, [to_email], msg.as_string())

    def verify(self) -> bool:
        if not self.settings.email_enabled:
            logger.warning("SMTP not configured (EMAIL_USER/EMAIL_PASS missing), confirmation emails disabled")
            return False
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error: %s", e)
            return False
        logger.info("SMTP ready")
        return True

    def send_confirmation(
        self, appointment: Appointment, appointment_date: date, appointment_time: str
    ) -> bool:
        """Send the confirmation email to the client. Returns False instead of raising."""
        if not self.settings.email_enabled:
            logger.warning("Email disabled (SMTP not configured), cannot notify %s", appointment.email)
            return False
        subject = f"Appointment Confirmed - {self.settings.site_name}"
        html = build_confirmation_html(
            self.settings,
            recipient_name=appointment.name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            consultation_type=appointment.consultation_type,
            preferred_country=appointment.preferred_country,
        )
        try:
            self._send(appointment.email, subject, html)
        except Exception as e:
            logger.exception("Failed to send confirmation to %s: %s", appointment.email, e)
            return False
        logger.info("Confirmation email sent to %s", appointment.email)
        return True

    def send_test_email(self) -> None:
        """Send a plain-text probe to the reply-to address; raises on failure."""
        if not self.settings.email_enabled:
            raise RuntimeError("SMTP not configured")
        self._send(
            self.settings.reply_to_address,
            f"SMTP Test - {self.settings.site_name}",
            "If you received this, SMTP is working.",
            subtype="plain",
        )
