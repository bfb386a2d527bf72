"""
app/services/contact.py — Contact form delivery
================================================

The contact form is not wired to any mail backend. SimulatedContactSender
waits a configurable delay, logs the message metadata and reports success.
Replace it through create_app(contact_sender=...) to deliver for real.
"""

import asyncio
import logging

from pydantic import BaseModel, EmailStr, Field

logger = logging.getLogger(__name__)


class ContactMessage(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


class SimulatedContactSender:
    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds
        self.sent: list[ContactMessage] = []

    async def send(self, message: ContactMessage) -> bool:
        await asyncio.sleep(self.delay_seconds)
        self.sent.append(message)
        logger.info(f"Contact message from {message.email} ({message.subject!r}) accepted, not delivered")
        return True
