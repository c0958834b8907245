"""Message bodies for renewal reminders, one set per delivery channel."""
from dataclasses import dataclass
from datetime import date
from html import escape

from app.services.reminder_policy import to_calendar_date


@dataclass(frozen=True)
class ReminderMessage:
    """Everything a channel needs to render a reminder."""

    document_title: str
    expiration_date: date | str
    days_until_expiry: int
    is_critical: bool = False

    @property
    def expiry(self) -> date:
        return to_calendar_date(self.expiration_date)

    @property
    def narrative(self) -> str:
        """Template key: expired, today, tomorrow or future."""
        if self.days_until_expiry < 0:
            return "expired"
        if self.days_until_expiry == 0:
            return "today"
        if self.days_until_expiry == 1:
            return "tomorrow"
        return "future"


def format_long_date(value: date) -> str:
    """e.g. Monday, March 3, 2025"""
    return f"{value:%A, %B} {value.day}, {value.year}"


def format_short_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def render_whatsapp_message(message: ReminderMessage, app_url: str) -> str:
    """Chat body with WhatsApp markdown."""
    emoji = "🚨" if message.is_critical else "📋"
    title = message.document_title
    expiry = format_long_date(message.expiry)
    days = message.days_until_expiry
    footer = 'Reply "RENEWED" once you\'ve updated this document.'

    if message.narrative == "expired":
        return (
            f"{emoji} *EXPIRED DOCUMENT ALERT*\n\n"
            f'Your document "{title}" expired {abs(days)} day(s) ago on {expiry}.\n\n'
            f"⚠️ Please renew this document immediately to avoid any issues.\n\n"
            f"Log in to update: {app_url}\n\n"
            f"{footer}"
        )
    if message.narrative == "today":
        return (
            f"{emoji} *DOCUMENT EXPIRES TODAY*\n\n"
            f'Your document "{title}" expires TODAY ({expiry}).\n\n'
            f"⚠️ Please take immediate action to renew this document.\n\n"
            f"Log in to update: {app_url}\n\n"
            f"{footer}"
        )
    if message.narrative == "tomorrow":
        return (
            f"{emoji} *DOCUMENT EXPIRES TOMORROW*\n\n"
            f'Your document "{title}" expires tomorrow ({expiry}).\n\n'
            f"⏰ Don't forget to renew this document!\n\n"
            f"Log in to update: {app_url}\n\n"
            f"{footer}"
        )
    return (
        f"{emoji} *DOCUMENT EXPIRY REMINDER*\n\n"
        f'Your document "{title}" will expire in {days} day(s) on {expiry}.\n\n'
        f"📅 Plan ahead to renew this document on time.\n\n"
        f"Log in to manage: {app_url}\n\n"
        f"{footer}"
    )


def render_sms_message(message: ReminderMessage, app_name: str, app_url: str) -> str:
    """Short plain-text body."""
    title = message.document_title
    expiry = format_short_date(message.expiry)
    days = message.days_until_expiry

    if message.narrative == "expired":
        return f'{app_name} Alert: "{title}" expired {abs(days)} day(s) ago ({expiry}). Please renew immediately. Visit: {app_url}'
    if message.narrative == "today":
        return f'{app_name} Alert: "{title}" expires TODAY ({expiry}). Take immediate action! Visit: {app_url}'
    if message.narrative == "tomorrow":
        return f'{app_name} Reminder: "{title}" expires tomorrow ({expiry}). Don\'t forget to renew! Visit: {app_url}'
    return f'{app_name} Reminder: "{title}" expires in {days} days ({expiry}). Plan to renew on time. Visit: {app_url}'


def render_email_subject(message: ReminderMessage) -> str:
    priority = "[CRITICAL] " if message.is_critical else ""
    title = message.document_title

    if message.narrative == "expired":
        return f"{priority}EXPIRED: {title} - Action Required"
    if message.narrative == "today":
        return f"{priority}EXPIRES TODAY: {title} - Immediate Action Needed"
    if message.narrative == "tomorrow":
        return f"{priority}EXPIRES TOMORROW: {title} - Reminder"
    return f"{priority}Reminder: {title} expires in {message.days_until_expiry} days"


def _urgency_color(days: int) -> str:
    if days <= 1:
        return "#dc2626"
    if days <= 7:
        return "#f59e0b"
    return "#3b82f6"


def _urgency_banner(message: ReminderMessage) -> str:
    prefix = "🚨 CRITICAL: " if message.is_critical else "📋 "
    if message.narrative == "expired":
        return f"{prefix}EXPIRED"
    if message.narrative == "today":
        return f"{prefix}EXPIRES TODAY"
    if message.narrative == "tomorrow":
        return f"{prefix}EXPIRES TOMORROW"
    return f"{prefix}EXPIRES IN {message.days_until_expiry} DAYS"


def _email_paragraph(message: ReminderMessage) -> str:
    days = message.days_until_expiry
    if message.narrative == "expired":
        return (
            f"Your document has <strong>expired {abs(days)} day(s) ago</strong>. "
            "Please renew this document immediately to avoid any compliance issues."
        )
    if message.narrative == "today":
        return "Your document <strong>expires today</strong>. Please take immediate action to renew this document."
    if message.narrative == "tomorrow":
        return "Your document <strong>expires tomorrow</strong>. Don't forget to renew it on time!"
    return f"Your document will expire in <strong>{days} days</strong>. Plan ahead to renew this document on time."


def render_email_html(message: ReminderMessage, app_name: str, app_url: str) -> str:
    """Generate the HTML body for a reminder email."""
    color = _urgency_color(message.days_until_expiry)
    expiry = format_long_date(message.expiry)

    return f"""
    <html>
    <body style="margin: 0; padding: 0; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #f8fafc;">
        <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
            <div style="background: #4f46e5; padding: 32px; text-align: center;">
                <h1 style="color: #ffffff; margin: 0; font-size: 28px;">{app_name}</h1>
                <p style="color: #e0e7ff; margin: 8px 0 0 0; font-size: 14px;">Document Expiry Management</p>
            </div>
            <div style="background-color: {color}; color: #ffffff; padding: 16px; text-align: center; font-weight: 600;">
                {_urgency_banner(message)}
            </div>
            <div style="padding: 32px;">
                <h2 style="color: #1f2937; margin: 0 0 16px 0;">Document Reminder</h2>
                <div style="background-color: #f8fafc; border-left: 4px solid {color}; padding: 16px; margin: 24px 0;">
                    <h3 style="color: #374151; margin: 0 0 8px 0;">{escape(message.document_title)}</h3>
                    <p style="color: #6b7280; margin: 0;"><strong>Expiry Date:</strong> {expiry}</p>
                </div>
                <p style="color: #374151; line-height: 1.6;">{_email_paragraph(message)}</p>
                <div style="text-align: center; margin: 32px 0;">
                    <a href="{app_url}" style="display: inline-block; background: #4f46e5; color: #ffffff; text-decoration: none; padding: 16px 32px; border-radius: 8px; font-weight: 600;">
                        Manage Documents →
                    </a>
                </div>
                <p style="margin-top: 24px; padding-top: 16px; border-top: 1px solid #e5e7eb; color: #9ca3af; font-size: 12px;">
                    This is an automated reminder from {app_name}. You're receiving this because you have documents approaching their expiry dates.
                </p>
            </div>
        </div>
    </body>
    </html>
    """
