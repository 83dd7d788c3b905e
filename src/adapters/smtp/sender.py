"""
SMTP email sender adapter - Implements EmailSender protocol.

Builds the confirmation and password-recovery messages, each embedding the
lifecycle token as a URL query parameter, and delivers them with smtplib.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from urllib.parse import urlencode

from src.domain.ports import EmailData, EmailSubject

# Subject line and web path per lifecycle email
_TEMPLATES = {
    EmailSubject.REGISTRATION: (
        "Please, verify your email",
        "/register/confirm",
        "Hello {name}, here is your verification link: {link}",
    ),
    EmailSubject.RESET_PASSWORD: (
        "Please, set a new password",
        "/password/recover",
        "Hello {name}, here you can change your password: {link}",
    ),
}


def build_message(email: EmailData, sender_address: str, web_base_url: str) -> EmailMessage:
    """Render the lifecycle email for a recipient."""
    subject, path, body = _TEMPLATES[email.subject]
    link = f"{web_base_url.rstrip('/')}{path}?{urlencode({'token': email.token})}"

    message = EmailMessage()
    message["From"] = sender_address
    message["To"] = formataddr((email.recipient.name, email.recipient.email))
    message["Subject"] = subject
    message.set_content(body.format(name=email.recipient.name, link=link))
    return message


class SmtpEmailSender:
    """
    Implements EmailSender protocol via SMTP.

    One connection per message; failures propagate to the dispatcher,
    which owns retries.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender_address: str,
        web_base_url: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender_address = sender_address
        self._web_base_url = web_base_url
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send(self, email: EmailData) -> None:
        message = build_message(email, self._sender_address, self._web_base_url)
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password)
            smtp.send_message(message)
