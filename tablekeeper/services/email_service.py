"""Email service for guest and staff notifications."""

import html
import logging
import smtplib
from dataclasses import dataclass
from datetime import date, datetime
from email.message import EmailMessage
from email.utils import formataddr

import httpx

from tablekeeper.config import Config, get_config
from tablekeeper.errors import NotificationError
from tablekeeper.templates import load_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    """A rendered email ready to hand to a transport."""

    to: str
    subject: str
    html: str
    text: str
    to_name: str | None = None


def format_long_date(value: str) -> str:
    """Render an ISO date as e.g. 'Sunday, June 1, 2025'.

    Values that are not ISO dates are returned unchanged.
    """
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


class EmailService:
    """Service for rendering and delivering transactional emails.

    This service handles:
    - Confirmation emails for accepted reservations
    - Rejection emails for cancelled reservations
    - Magic-link sign-in and invite emails for staff

    Delivery goes through SMTP (account + password) or the Brevo HTTP API,
    selected by ``EMAIL_TRANSPORT``.
    """

    def __init__(self, cfg: Config | None = None) -> None:
        """Initialize the email service."""
        self.config = cfg or get_config()
        if not self.config.has_email_config():
            logger.warning("Email not configured - notifications will not be delivered")
        else:
            logger.info(f"Email service initialized ({self.config.email_transport})")

    def is_configured(self) -> bool:
        """Check if the selected transport has credentials.

        Returns:
            True if email can be sent, False otherwise
        """
        return self.config.has_email_config()

    # ---------- Rendering ----------

    def _branding(self) -> dict[str, str]:
        cfg = self.config
        return {
            "restaurant_name": html.escape(cfg.restaurant_name),
            "restaurant_name_upper": cfg.restaurant_name.upper(),
            "restaurant_email": html.escape(cfg.restaurant_email),
            "restaurant_phone": html.escape(cfg.restaurant_phone),
            "restaurant_address": html.escape(cfg.restaurant_address),
            "year": str(datetime.now().year),
        }

    def _render(self, template: str, subject: str, to: str, to_name: str | None, **values) -> OutgoingEmail:
        branding = self._branding()
        escaped = {key: html.escape(str(value)) for key, value in values.items()}
        return OutgoingEmail(
            to=to,
            to_name=to_name,
            subject=subject,
            html=load_template(f"{template}.html", **branding, **escaped),
            text=load_template(f"{template}.txt", **branding, **values),
        )

    def render_confirmation(
        self,
        to: str,
        first_name: str,
        last_name: str,
        booking_date: str,
        booking_time: str,
        table: str,
    ) -> OutgoingEmail:
        guest_name = f"{first_name} {last_name}".strip()
        return self._render(
            "confirmation",
            subject=f"Your Reservation is Confirmed - {self.config.restaurant_name}",
            to=to,
            to_name=guest_name,
            guest_name=guest_name,
            date=format_long_date(booking_date),
            time=booking_time,
            table=table,
        )

    def render_rejection(
        self, to: str, guest_name: str, booking_date: str, booking_time: str
    ) -> OutgoingEmail:
        return self._render(
            "rejection",
            subject=f"Reservation Update - {self.config.restaurant_name}",
            to=to,
            to_name=guest_name,
            guest_name=guest_name,
            date=format_long_date(booking_date),
            time=booking_time,
        )

    def render_magic_link(
        self, to: str, employee_name: str, link: str, invite: bool = False
    ) -> OutgoingEmail:
        if invite:
            heading = "You're invited"
            intro = (
                f"You have been added to the {self.config.restaurant_name} staff "
                "dashboard. Use the link below to activate your account."
            )
        else:
            heading = "Your sign-in link"
            intro = "Use the link below to sign in to the staff dashboard."

        return self._render(
            "magic_link",
            subject=f"{heading} - {self.config.restaurant_name}",
            to=to,
            to_name=employee_name,
            heading=heading,
            heading_upper=heading.upper(),
            intro=intro,
            employee_name=employee_name,
            link=link,
            ttl_minutes=self.config.magic_link_ttl_minutes,
        )

    # ---------- Delivery ----------

    def send(self, email: OutgoingEmail) -> None:
        """Deliver a rendered email.

        Args:
            email: The rendered email

        Raises:
            NotificationError: If email is not configured or delivery fails
        """
        if not self.is_configured():
            msg = "Email is not configured"
            raise NotificationError(msg)

        try:
            logger.info(f"Sending '{email.subject}' to {email.to}")
            if self.config.email_transport == "brevo":
                self._send_brevo(email)
            else:
                self._send_smtp(email)
        except (smtplib.SMTPException, OSError, httpx.HTTPError) as e:
            logger.exception("Failed to send email")
            raise NotificationError(str(e)) from e
        else:
            logger.info(f"Email sent to {email.to}")

    def _send_smtp(self, email: OutgoingEmail) -> None:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = formataddr(
            (self.config.restaurant_name, self.config.sender_address)
        )
        message["To"] = formataddr((email.to_name or "", email.to))
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")

        with smtplib.SMTP_SSL(
            self.config.smtp_host,
            self.config.smtp_port,
            timeout=self.config.email_timeout,
        ) as smtp:
            smtp.login(self.config.email_user, self.config.email_pass)
            smtp.send_message(message)

    def _send_brevo(self, email: OutgoingEmail) -> None:
        recipient = {"email": email.to}
        if email.to_name:
            recipient["name"] = email.to_name

        payload = {
            "sender": {
                "name": self.config.restaurant_name,
                "email": self.config.sender_address,
            },
            "to": [recipient],
            "subject": email.subject,
            "htmlContent": email.html,
            "textContent": email.text,
        }

        with httpx.Client(timeout=self.config.email_timeout) as client:
            response = client.post(
                self.config.brevo_api_url,
                headers={
                    "accept": "application/json",
                    "api-key": self.config.brevo_api_key,
                },
                json=payload,
            )
            response.raise_for_status()

    # ---------- Convenience ----------

    def send_confirmation(
        self,
        to: str,
        first_name: str,
        last_name: str,
        booking_date: str,
        booking_time: str,
        table: str,
    ) -> None:
        self.send(
            self.render_confirmation(
                to, first_name, last_name, booking_date, booking_time, table
            )
        )

    def send_rejection(
        self, to: str, guest_name: str, booking_date: str, booking_time: str
    ) -> None:
        self.send(self.render_rejection(to, guest_name, booking_date, booking_time))

    def send_magic_link(
        self, to: str, employee_name: str, link: str, invite: bool = False
    ) -> None:
        self.send(self.render_magic_link(to, employee_name, link, invite=invite))
