"""Subjects and bodies for the emails sent by the auth flows."""

from dataclasses import dataclass
from urllib.parse import urlencode


@dataclass(frozen=True, slots=True)
class EmailMessage:
    subject: str
    body: str
    html_body: str


def verification_link(base_url: str, token: str, email: str) -> str:
    return f"{base_url.rstrip('/')}/verify-email?{urlencode({'token': token, 'email': email})}"


def reset_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/reset-password?{urlencode({'token': token})}"


def verification_email(base_url: str, token: str, email: str, expires_hours: int) -> EmailMessage:
    link = verification_link(base_url, token, email)
    body = (
        "Welcome!\n\n"
        "Please verify your email address by opening the link below:\n"
        f"{link}\n\n"
        f"This link expires in {expires_hours} hours.\n\n"
        "If you did not create an account, you can ignore this email.\n"
    )
    html_body = f"""
    <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1e293b;">Verify your email</h2>
            <p style="color: #475569; line-height: 1.6;">
                Thanks for signing up. Please confirm your email address by clicking the button below.
            </p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{link}"
                   style="background-color: #3b82f6; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; display: inline-block;">
                    Verify email
                </a>
            </p>
            <p style="color: #64748b; font-size: 14px;">This link expires in {expires_hours} hours.</p>
        </body>
    </html>
    """
    return EmailMessage(subject="Verify your email", body=body, html_body=html_body)


def password_reset_email(base_url: str, token: str, expires_minutes: int) -> EmailMessage:
    link = reset_link(base_url, token)
    body = (
        "We received a request to reset your password.\n\n"
        "Open the link below to choose a new password:\n"
        f"{link}\n\n"
        f"This link expires in {expires_minutes} minutes.\n\n"
        "If you did not request a reset, you can ignore this email.\n"
    )
    html_body = f"""
    <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #1e293b;">Reset your password</h2>
            <p style="color: #475569; line-height: 1.6;">
                We received a request to reset your password.
            </p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{link}"
                   style="background-color: #3b82f6; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; display: inline-block;">
                    Reset password
                </a>
            </p>
            <p style="color: #64748b; font-size: 14px;">This link expires in {expires_minutes} minutes.</p>
        </body>
    </html>
    """
    return EmailMessage(subject="Reset your password", body=body, html_body=html_body)
