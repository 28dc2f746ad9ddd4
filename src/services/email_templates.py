"""Plain-text and HTML bodies for transactional emails."""
from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready to hand to a sender."""

    to: str
    subject: str
    text: str
    html: str


def verification_link(frontend_url: str, token: str) -> str:
    """URL of the frontend page that submits the token back to the API."""
    return f"{frontend_url.rstrip('/')}/auth/verify-email?token={token}"


def welcome_email(to: str, name: str, link: str) -> EmailMessage:
    """Sent right after registration."""
    text = (
        f"Hi {name},\n\n"
        "Welcome! Please confirm your email address by opening the link below:\n\n"
        f"{link}\n\n"
        "The link expires in 1 hour. If you did not create an account, ignore this email.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Welcome! Please confirm your email address:</p>"
        f'<p><a href="{escape(link, quote=True)}">Verify my email</a></p>'
        "<p>The link expires in 1 hour. If you did not create an account, ignore this email.</p>"
    )
    return EmailMessage(to=to, subject="Welcome! Verify your account", text=text, html=html)


def resend_verification_email(to: str, name: str, link: str) -> EmailMessage:
    """Sent when a user asks for a fresh verification link."""
    text = (
        f"Hi {name},\n\n"
        "Here is your new verification link:\n\n"
        f"{link}\n\n"
        "The link expires in 1 hour.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Here is your new verification link:</p>"
        f'<p><a href="{escape(link, quote=True)}">Verify my email</a></p>'
        "<p>The link expires in 1 hour.</p>"
    )
    return EmailMessage(to=to, subject="Verify your email", text=text, html=html)


def password_reset_link(frontend_url: str, token: str) -> str:
    """URL of the frontend page where the user picks a new password."""
    return f"{frontend_url.rstrip('/')}/auth/reset-password?token={token}"


def password_reset_email(to: str, name: str, link: str) -> EmailMessage:
    """Sent when a user asks to reset a forgotten password."""
    text = (
        f"Hi {name},\n\n"
        "We received a request to reset your password. Choose a new one here:\n\n"
        f"{link}\n\n"
        "The link expires in 1 hour and works once. "
        "If you did not ask for this, ignore this email; your password is unchanged.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>We received a request to reset your password.</p>"
        f'<p><a href="{escape(link, quote=True)}">Reset my password</a></p>'
        "<p>The link expires in 1 hour and works once. "
        "If you did not ask for this, ignore this email; your password is unchanged.</p>"
    )
    return EmailMessage(to=to, subject="Reset your password", text=text, html=html)


def password_reset_confirmation_email(to: str, name: str) -> EmailMessage:
    """Sent after a password was changed through a reset link."""
    text = (
        f"Hi {name},\n\n"
        "Your password has been changed. If this was not you, "
        "reset it again right away and contact support.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Your password has been changed. If this was not you, "
        "reset it again right away and contact support.</p>"
    )
    return EmailMessage(to=to, subject="Your password was changed", text=text, html=html)
