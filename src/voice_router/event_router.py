"""Webhook event router.

Stateless per request: parse the body into a WebhookEvent, drive the
handler for its kind and return the JSON body the voice platform
expects. ``handle`` never raises; a failed webhook would disrupt the
live call, so any internal error is answered with a plain success body.
"""

import asyncio
import json
import logging
from typing import Any, Dict

from .config import Settings
from .events import parse_event
from .handlers.assistant import handle_assistant_request
from .handlers.tools import CRM_NOT_CONFIGURED_ERROR, ToolDispatcher
from .integrations.freshsales import FreshsalesClient
from .integrations.kb_search import KnowledgeBaseSearch
from .knowledge.loader import load_critical_answers
from .schemas import EventKind, ToolResultsResponse, WebhookEvent

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT: Dict[str, Any] = {"success": True}


class WebhookRouter:
    """Classify inbound webhook events and dispatch them."""

    def __init__(
        self,
        settings: Settings,
        crm: FreshsalesClient,
        search: KnowledgeBaseSearch,
        debug: bool = False,
    ):
        self.settings = settings
        self.crm = crm
        self.search = search
        self.tools = ToolDispatcher(crm, search)
        self.debug = debug

    @classmethod
    def from_settings(cls, settings: Settings) -> "WebhookRouter":
        try:
            critical_answers = load_critical_answers(settings.critical_answers_path)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error(
                "Critical answers at %s unusable (%s); using the bundled table",
                settings.critical_answers_path,
                exc,
            )
            critical_answers = load_critical_answers()
        return cls(
            settings,
            crm=FreshsalesClient(settings),
            search=KnowledgeBaseSearch(settings, critical_answers),
            debug=settings.debug_mode,
        )

    async def handle(self, body: Any) -> Dict[str, Any]:
        """Return the response body for ``body``. Never raises."""
        try:
            return await self.route(body)
        except Exception:
            logger.exception("Webhook handling failed; acknowledging")
            return dict(ACKNOWLEDGEMENT)

    async def route(self, body: Any) -> Dict[str, Any]:
        if self.debug:
            logger.debug("Raw webhook body: %s", body)

        event = parse_event(body)
        logger.info(
            "Webhook event classified: kind=%s type=%s tool_calls=%d",
            event.kind.value,
            event.event_type or "-",
            len(event.tool_invocations),
        )

        if event.kind is EventKind.NON_ACTIONABLE:
            return dict(ACKNOWLEDGEMENT)
        if event.kind is EventKind.ASSISTANT_REQUEST:
            return await handle_assistant_request(event, self.crm, self.settings)
        if event.kind is EventKind.TOOL_CALLS:
            return await self.handle_tool_calls(event)
        return await self.handle_unrecognized(event)

    async def handle_tool_calls(self, event: WebhookEvent) -> Dict[str, Any]:
        """Run every invocation concurrently; results keep input order."""
        entries = await asyncio.gather(
            *(self.tools.dispatch(invocation, event.caller_number) for invocation in event.tool_invocations)
        )
        return ToolResultsResponse(results=list(entries)).to_body()

    async def handle_unrecognized(self, event: WebhookEvent) -> Dict[str, Any]:
        """Direct phone lookups, otherwise a diagnostic acknowledgement."""
        if event.direct_phone:
            if not self.crm.configured:
                logger.error(CRM_NOT_CONFIGURED_ERROR)
                return {"success": False, "error": CRM_NOT_CONFIGURED_ERROR}
            result = await self.crm.lookup_by_phone(event.direct_phone)
            return result.model_dump(by_alias=True, exclude_none=True)

        logger.info("Unhandled webhook event type: %s", event.event_type or "<none>")
        response: Dict[str, Any] = dict(ACKNOWLEDGEMENT)
        response["receivedKeys"] = list(event.received_keys)
        if self.debug:
            response["receivedType"] = event.event_type or None
        return response


def debug_probe(body: Any, timestamp: str) -> Dict[str, Any]:
    """Echo the first tool call id back so tool wiring can be checked. Never raises."""
    try:
        event = parse_event(body)
    except Exception:
        logger.exception("Debug probe could not parse body; acknowledging")
        return dict(ACKNOWLEDGEMENT)
    first_id = event.tool_invocations[0].id if event.tool_invocations else "unknown"
    payload = {
        "success": True,
        "message": "Debug endpoint reached successfully",
        "receivedType": event.event_type or "unknown",
        "toolCallCount": len(event.tool_invocations),
        "timestamp": timestamp,
    }
    return ToolResultsResponse.model_validate(
        {"results": [{"toolCallId": first_id, "result": json.dumps(payload)}]}
    ).to_body()
