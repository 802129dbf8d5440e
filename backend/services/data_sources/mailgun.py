"""Feedback delivery through the Mailgun messages API."""

import logging

import requests

from core.config import MAILGUN_API_BASE, REQUEST_TIMEOUT, get_mailgun_settings
from core.errors import MailgunError

logger = logging.getLogger(__name__)

FEEDBACK_SUBJECT = "New Feedback for Chat2Geo!"


def mailgun_configured() -> bool:
    return all(get_mailgun_settings().values())


def build_feedback_text(sender_email: str, message: str) -> str:
    return f"Hello,\n\nYou have a new form entry from: {sender_email}.\n\n{message}\n"


def send_feedback_email(sender_email: str, message: str) -> None:
    """Send a feedback message to the configured recipient.

    Raises:
        MailgunError: If Mailgun is unreachable or rejects the message
    """
    settings = get_mailgun_settings()
    url = f"{MAILGUN_API_BASE}/{settings['domain']}/messages"
    try:
        response = requests.post(
            url,
            auth=("api", settings["api_key"]),
            data={
                "from": f"Chat2Geo <{settings['sender']}>",
                "to": settings["recipient"],
                "subject": FEEDBACK_SUBJECT,
                "text": build_feedback_text(sender_email, message),
            },
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        raise MailgunError(f"Mailgun rejected the message: {status_code}", status_code) from e
    except requests.exceptions.RequestException as e:
        raise MailgunError(f"Error connecting to Mailgun: {e}") from e

    logger.info(f"Feedback email from {sender_email} sent")
