# Overview: Outbound e-mail senders behind a single send(recipient, subject, body) port.

"""
Notification senders.

The outbox dispatcher only knows the `send(recipient, subject, body)` call.
A sender signals failure by raising NotificationDeliveryError; anything it
returns is ignored.

- LogNotificationSender: writes the message to the app logger (dev default)
- ResendNotificationSender: POSTs to the Resend HTTP API with httpx

The active sender lives in app.extensions["notification_sender"] so tests
can swap in a recording double.
"""

from __future__ import annotations

import httpx
from flask import current_app


class NotificationDeliveryError(Exception):
    """Raised by a sender when the provider did not accept the message."""


class LogNotificationSender:
    def send(self, recipient: str, subject: str, body: str) -> None:
        current_app.logger.info("Email (log backend) to=%s subject=%r", recipient, subject)
        current_app.logger.debug("Email body:\n%s", body)


class ResendNotificationSender:
    def __init__(
        self,
        api_key: str,
        from_address: str,
        *,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("RESEND_API_KEY is required for the resend backend")
        self.api_key = api_key
        self.from_address = from_address
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    def send(self, recipient: str, subject: str, body: str) -> None:
        payload = {
            "from": self.from_address,
            "to": [recipient],
            "subject": subject,
            "text": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationDeliveryError(f"Resend request failed: {exc}") from exc

        if response.status_code >= 300:
            raise NotificationDeliveryError(
                f"Resend returned {response.status_code}: {response.text[:200]}"
            )


def build_sender(config) -> LogNotificationSender | ResendNotificationSender:
    backend = (config.get("NOTIFICATION_BACKEND") or "log").lower()
    if backend == "log":
        return LogNotificationSender()
    if backend == "resend":
        return ResendNotificationSender(
            config.get("RESEND_API_KEY"),
            config.get("EMAIL_FROM"),
            api_url=config.get("RESEND_API_URL", "https://api.resend.com/emails"),
            timeout=config.get("NOTIFICATION_TIMEOUT_SECONDS", 10.0),
        )
    raise ValueError(f"Unknown NOTIFICATION_BACKEND: {backend}")


def get_sender():
    return current_app.extensions["notification_sender"]
