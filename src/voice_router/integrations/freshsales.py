"""Freshsales CRM contact lookup adapter.

Read-only helper that finds a contact by phone number. The CRM search
endpoint only matches the exact stored rendering of a number, so every
normalized variant is tried against ``mobile_number`` first and then
against ``phone``. The first hit wins.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..exceptions import ConfigurationError
from ..phone import normalize
from ..schemas import UNKNOWN_NAME, Contact, LookupResult

logger = logging.getLogger(__name__)

PRIMARY_FIELD = "mobile_number"
SECONDARY_FIELD = "phone"
SEARCH_FIELDS = (PRIMARY_FIELD, SECONDARY_FIELD)

NOT_FOUND_ERROR = "No contact found with the provided phone number"


class FreshsalesClient:
    """Contact search against the Freshsales ``/lookup`` endpoint."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self.settings.crm_configured

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token token={self.settings.freshsales_api_token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.freshsales_timeout, transport=self._transport)

    async def find_contact(
        self, client: httpx.AsyncClient, variant: str, field: str
    ) -> Optional[Dict[str, Any]]:
        """Query one variant against one field; return the first contact or None.

        Network errors, non-2xx answers and unrecognized bodies are logged
        and reported as no match.
        """
        url = f"{self.settings.freshsales_base_url.rstrip('/')}/lookup"
        params = {"q": variant, "f": field, "entities": "contact"}
        try:
            resp = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Freshsales lookup %s=%s failed: %s", field, variant, exc)
            return None

        if not resp.is_success:
            logger.warning("Freshsales lookup %s=%s returned %s", field, variant, resp.status_code)
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Freshsales lookup %s=%s returned a non-JSON body", field, variant)
            return None

        contacts = data.get("contacts") if isinstance(data, dict) else None
        contacts = contacts.get("contacts") if isinstance(contacts, dict) else None
        if not isinstance(contacts, list) or not contacts:
            if contacts is None:
                logger.warning("Freshsales lookup %s=%s returned an unexpected body", field, variant)
            return None
        if not isinstance(contacts[0], dict):
            logger.warning("Freshsales lookup %s=%s returned a malformed contact", field, variant)
            return None
        return contacts[0]

    async def lookup_by_phone(self, raw_phone: str) -> LookupResult:
        """Find the contact for ``raw_phone`` trying every variant and field.

        Raises ConfigurationError when no API token is configured.
        """
        if not self.configured:
            raise ConfigurationError("FRESHSALES_API_TOKEN")

        normalized = normalize(raw_phone)
        variants = list(normalized.variants)

        async with self._client() as client:
            for field in SEARCH_FIELDS:
                for variant in variants:
                    contact = await self.find_contact(client, variant, field)
                    if contact is None:
                        continue
                    logger.info("Freshsales contact found via %s=%s", field, variant)
                    return LookupResult(
                        success=True,
                        contact=_extract_contact(contact),
                        phone_searched=variant,
                        field_searched=field,
                        variants_tried=variants,
                    )

        logger.warning("No Freshsales contact for %s after %d variants", normalized.with_country_code, len(variants))
        return LookupResult(
            success=False,
            error=NOT_FOUND_ERROR,
            needs_phone_number=True,
            phone_searched=normalized.with_country_code,
            variants_tried=variants,
        )


def _extract_contact(contact: Dict[str, Any]) -> Contact:
    """Return the contact projection with CRM defaults for blank fields."""
    custom = contact.get("custom_field") or {}
    return Contact(
        display_name=contact.get("display_name") or UNKNOWN_NAME,
        mailbox_id=custom.get("cf_mailbox_id") or "",
        approval_status=custom.get("cf_1583_doc_status") or "No Docs",
        flagged_for_resubmission=custom.get("cf_flagged_for_resubmission") or "No",
        belongs_to=custom.get("cf_belongs_to") or "",
        tags=contact.get("tags") or [],
    )
