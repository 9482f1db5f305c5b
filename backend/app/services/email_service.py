"""Transactional email: HTML rendering for each template and SMTP delivery."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from html import escape
from typing import TYPE_CHECKING

import aiosmtplib

from app.core.config import settings

if TYPE_CHECKING:
    from app.models.academy import Academy
    from app.models.charge import Charge

logger = logging.getLogger(__name__)

TEMPLATE_PAYMENT_REMINDER = "payment_reminder"
TEMPLATE_PLAN_LIMITS_EXCEEDED = "plan_limits_exceeded"
TEMPLATE_SUBSCRIPTION_PAYMENT_FAILED = "subscription_payment_failed"


def format_cents(amount_cents: object, currency: str = "EUR") -> str:
    """Format an integer cent amount as ``"50.00 EUR"``."""
    cents = int(amount_cents or 0)  # type: ignore[call-overload]
    return f"{cents // 100}.{cents % 100:02d} {currency}"


def _format_date(dt: object) -> str:
    # YYYY-MM-DD, empty for None
    if dt is None:
        return ""
    return str(dt)[:10]


def render_payment_reminder(
    charge: Charge, academy: Academy, athlete_name: str, guardian_name: str | None
) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for a pending-charge reminder."""
    academy_name = escape(str(academy.name))
    subject = f"Payment reminder: {charge.label}"
    html_body = (
        f"<h2>Payment reminder</h2>"
        f"<p>Hello {escape(guardian_name or 'there')},</p>"
        f"<p>This is a reminder from {academy_name} about a pending payment "
        f"for {escape(athlete_name)}.</p>"
        f"<table>"
        f"<tr><td><strong>Concept:</strong></td><td>{escape(str(charge.label))}</td></tr>"
        f"<tr><td><strong>Amount:</strong></td>"
        f"<td>{format_cents(charge.amount_cents, str(charge.currency))}</td></tr>"
        f"<tr><td><strong>Due date:</strong></td><td>{_format_date(charge.due_date)}</td></tr>"
        f"</table>"
        f"<p>If you have already paid, please ignore this message.</p>"
    )
    return subject, html_body


def render_plan_limits_exceeded(
    owner_name: str | None, plan_name: str, violations: list[dict[str, object]]
) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for a forced plan change over the limits."""
    rows = "".join(
        f"<li>{escape(str(v.get('academy_name') or 'Account'))}: {escape(str(v['resource']))} "
        f"{v['current_count']} / {v['limit']}</li>"
        for v in violations
    )
    subject = f"Your {settings.APP_NAME} plan changed to {plan_name}"
    html_body = (
        f"<h2>Your plan has changed</h2>"
        f"<p>Hello {escape(owner_name or 'there')},</p>"
        f"<p>Your account is now on the <strong>{escape(plan_name)}</strong> plan. "
        f"Some resources exceed the new plan limits:</p>"
        f"<ul>{rows}</ul>"
        f"<p>Existing records are kept, but you cannot add new ones until usage is "
        f"within the limits or you upgrade again.</p>"
        f"<p>Questions? Write to {escape(settings.SUPPORT_EMAIL)}.</p>"
    )
    return subject, html_body


def render_subscription_payment_failed(
    owner_name: str | None, hosted_invoice_url: str | None
) -> tuple[str, str]:
    subject = f"{settings.APP_NAME}: subscription payment failed"
    link = (
        f'<p><a href="{escape(hosted_invoice_url)}">Review the invoice</a></p>'
        if hosted_invoice_url
        else ""
    )
    html_body = (
        f"<h2>We could not charge your subscription</h2>"
        f"<p>Hello {escape(owner_name or 'there')},</p>"
        f"<p>Please update your payment method to keep your plan active.</p>"
        f"{link}"
    )
    return subject, html_body


def build_message(to: str, subject: str, html_body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    message["To"] = to
    message["Subject"] = subject
    message.set_content("Please view this email in an HTML-capable client.")
    message.add_alternative(html_body, subtype="html")
    return message


class EmailService:
    """SMTP transport. Without ``SMTP_HOST`` every send is a logged no-op that succeeds."""

    async def send_email(self, to: str, subject: str, html_body: str) -> bool:
        if not settings.SMTP_HOST:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return True

        await aiosmtplib.send(
            build_message(to, subject, html_body),
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True
