"""assistant-request handling.

The platform sends ``assistant-request`` before the first turn of a call.
Answering it is the only chance to inject a per-caller greeting, so the
caller is looked up in the CRM here and the greeting is returned as an
override of the configured assistant.
"""
import logging
from typing import Any, Dict, Optional

from ..config import Settings
from ..integrations.freshsales import FreshsalesClient
from ..schemas import WebhookEvent

logger = logging.getLogger(__name__)

FIRST_MESSAGE_MODE = "assistant-speaks-first"


def build_greeting(first_name: Optional[str], company: str) -> str:
    """Return the opening line, personalized when a first name is known."""
    salutation = f"Hi {first_name}!" if first_name else "Hi!"
    return (
        f"{salutation} Thank you for calling {company}. "
        f"I'm an AI assistant trained on all {company} knowledge. "
        "How can I help you today?"
    )


async def lookup_first_name(crm: FreshsalesClient, phone: Optional[str]) -> Optional[str]:
    """Return the caller's first name, or None when unknown or not looked up."""
    if not phone:
        logger.info("assistant-request without caller number; using generic greeting")
        return None
    if not crm.configured:
        logger.error("FRESHSALES_API_TOKEN not configured; using generic greeting")
        return None

    result = await crm.lookup_by_phone(phone)
    if result.success and result.contact:
        return result.contact.first_name or None
    return None


async def handle_assistant_request(
    event: WebhookEvent, crm: FreshsalesClient, settings: Settings
) -> Dict[str, Any]:
    """Build the assistant selection response with the greeting override."""
    first_name = await lookup_first_name(crm, event.caller_number)
    logger.info("Greeting for %s: %s", event.caller_number or "unknown caller", first_name or "generic")

    overrides = {
        "firstMessage": build_greeting(first_name, settings.company_name),
        "firstMessageMode": FIRST_MESSAGE_MODE,
    }
    if settings.vapi_assistant_id:
        return {"assistantId": settings.vapi_assistant_id, "assistantOverrides": overrides}
    return {"assistant": overrides}
