"""
Email Service

Outbound transactional email over SMTP. Every send is fire-and-forget:
failures are logged and reported as False, never raised to the caller.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, Optional

from flask import current_app

ROLE_LABELS = {
    "trainer": "Personal Trainer",
    "athlete": "Athlete",
    "nutritionist": "Nutritionist",
}

STATUS_MESSAGES = {
    "active": "Your subscription is active. Enjoy every feature of your plan!",
    "cancelled": "Your subscription was cancelled. You keep access until the end of the paid period.",
    "expired": "Your subscription has expired. Renew it to keep managing your clients.",
    "paused": "We could not process your last payment. Please update your payment method.",
}


class EmailService:
    """SMTP mailer configured from the Flask config mapping."""

    def __init__(self, config):
        self.enabled = config.get("MAIL_ENABLED", False)
        self.smtp_server = config.get("MAIL_SERVER", "localhost")
        self.smtp_port = config.get("MAIL_PORT", 587)
        self.smtp_username = config.get("MAIL_USERNAME")
        self.smtp_password = config.get("MAIL_PASSWORD")
        self.use_tls = config.get("MAIL_USE_TLS", True)
        self.from_email = config.get("MAIL_FROM", "FitCoach <noreply@fitcoach.app>")
        self.frontend_url = config.get("FRONTEND_URL", "http://localhost:3000").rstrip("/")

    @classmethod
    def from_current_app(cls):
        return cls(current_app.config)

    def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> bool:
        if not self.enabled:
            logging.info(f"Email disabled, would send to {to_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = to_email
            if text_content:
                msg.attach(MIMEText(text_content, "plain"))
            msg.attach(MIMEText(html_content, "html"))

            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
            logging.info(f"Email sent to {to_email}: {subject}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logging.error(f"Error sending email to {to_email}: {e}")
            return False

    def send_welcome(self, email, name, role):
        label = ROLE_LABELS.get(role, role)
        html = (
            f"<h1>Welcome to FitCoach, {name}!</h1>"
            f"<p>Your {label} account is ready.</p>"
            f'<p><a href="{self.frontend_url}/login">Sign in</a> to get started.</p>'
        )
        return self.send_email(email, "Welcome to FitCoach", html, f"Welcome to FitCoach, {name}!")

    def send_workout_assigned(self, email, name, workout_name, scheduled_date):
        when = scheduled_date.isoformat() if scheduled_date else "soon"
        html = (
            f"<h2>New workout assigned</h2>"
            f"<p>Hi {name}, your trainer assigned <strong>{workout_name}</strong> for {when}.</p>"
            f'<p><a href="{self.frontend_url}/workouts">Open your workouts</a></p>'
        )
        return self.send_email(email, f"New workout: {workout_name}", html)

    def send_subscription_event(self, email, name, status, plan_label):
        body = STATUS_MESSAGES.get(status, f"Your subscription status changed to {status}.")
        html = f"<h2>{plan_label}</h2><p>Hi {name},</p><p>{body}</p>"
        return self.send_email(email, f"Subscription update: {plan_label}", html, body)

    def send_password_reset(self, email, name, reset_url):
        html = (
            f"<p>Hi {name},</p>"
            "<p>We received a request to reset your password. The link is valid for 24 hours.</p>"
            f'<p><a href="{reset_url}">Reset password</a></p>'
            "<p>If you did not ask for this, ignore this email.</p>"
        )
        return self.send_email(email, "Reset your FitCoach password", html)

    def send_bulk(self, emails: Iterable[str], subject, html):
        """Returns the number of emails accepted by the server."""
        sent = 0
        for address in emails:
            if self.send_email(address, subject, html):
                sent += 1
        return sent
