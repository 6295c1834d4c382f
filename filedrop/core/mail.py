# filedrop/core/mail.py
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

logger = logging.getLogger(__name__)


def build_message(to: str, sender: str, subject: str, text: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["To"] = to
    message["From"] = sender
    message["Subject"] = subject
    message.set_content(text)
    message.add_alternative(html, subtype="html")
    return message


class SmtpTransport:
    """Delivers messages through an SMTP relay.

    `send` returns the recipient addresses the server refused; an empty list
    means every recipient was accepted.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = False,
        timeout: float = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> list[str]:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            try:
                refused = smtp.send_message(message)
            except smtplib.SMTPRecipientsRefused as e:
                refused = e.recipients
        if refused:
            logger.warning("SMTP server %s refused %d recipient(s)", self.host, len(refused))
        return list(refused)

    @classmethod
    def from_settings(cls, settings) -> "SmtpTransport":
        return cls(
            host=settings.email_server_host,
            port=settings.email_server_port,
            username=settings.email_server_user,
            password=settings.email_server_password,
            use_tls=settings.email_server_use_tls,
        )
