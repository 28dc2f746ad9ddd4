"""
Outgoing email.

Senders are plain async callables wrapped in small classes so the app can pick
SMTP in production and a log-only sender in development.
`EmailDispatcher` schedules sends in the background: registration never waits
on, or fails because of, the mail server.
"""
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from services.email_templates import EmailMessage

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    """Anything that can deliver a rendered message."""

    async def send(self, message: EmailMessage) -> None:
        """Deliver `message`; raise on failure."""
        ...


class SmtpEmailSender:
    """Send through an SMTP server; blocking smtplib calls run in a worker thread."""

    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._from_email = from_email
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def _build(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = self._from_email
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password)
            server.send_message(self._build(message))

    async def send(self, message: EmailMessage) -> None:
        """Deliver `message` via SMTP."""
        await asyncio.to_thread(self._send_sync, message)
        logger.info("email_sent", extra={"to": message.to, "subject": message.subject})


class LoggingEmailSender:
    """Log instead of sending. Used when no SMTP host is configured."""

    async def send(self, message: EmailMessage) -> None:
        """Log `message`."""
        logger.info(
            "email_not_sent_no_smtp",
            extra={"to": message.to, "subject": message.subject},
        )
        logger.debug("email_body to=%s body=%s", message.to, message.text)


class EmailDispatcher:
    """
    Fire-and-forget delivery.

    Keeps a reference to every in-flight task (the event loop only holds weak
    references) and logs failures instead of raising them.
    """

    def __init__(self, sender: EmailSender) -> None:
        self._sender = sender
        self._tasks: set[asyncio.Task] = set()

    @property
    def sender(self) -> EmailSender:
        """Underlying sender."""
        return self._sender

    def dispatch(self, message: EmailMessage) -> asyncio.Task:
        """Schedule `message` for delivery and return immediately."""
        task = asyncio.create_task(self._deliver(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, message: EmailMessage) -> None:
        try:
            await self._sender.send(message)
        except Exception:
            # never propagates: nothing awaits a dispatched task
            logger.exception(
                "email_send_failed",
                extra={"to": message.to, "subject": message.subject},
            )

    async def drain(self) -> None:
        """Wait for in-flight sends (called at shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
