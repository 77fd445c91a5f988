"""Tool-call dispatch.

Each tool handler takes one ToolInvocation and returns the string the
platform hands back to the model. Structured results are JSON-encoded
because tool results are string-only.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..exceptions import InvalidToolArguments
from ..integrations.freshsales import FreshsalesClient
from ..integrations.kb_search import KnowledgeBaseSearch
from ..schemas import ToolInvocation, ToolResponseEntry

logger = logging.getLogger(__name__)

SEARCH_KNOWLEDGE_BASE = "search_knowledge_base"
CHECK_1583_STATUS = "check_1583_status"
LOOKUP_CUSTOMER_FOR_GREETING = "lookup_customer_for_greeting"

EMPTY_QUERY_REPLY = "I couldn't understand the search query. Could you please rephrase your question?"
NO_PHONE_ERROR = "No phone number provided. Please ask the customer for their phone number."
CRM_NOT_CONFIGURED_ERROR = "FRESHSALES_API_TOKEN not configured on server"


def _json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload)


class ToolDispatcher:
    """Route tool invocations by name to the CRM or the knowledge search."""

    def __init__(self, crm: FreshsalesClient, search: KnowledgeBaseSearch):
        self.crm = crm
        self.search = search
        self._handlers: Dict[str, Callable[[ToolInvocation, Optional[str]], Awaitable[str]]] = {
            SEARCH_KNOWLEDGE_BASE: self.search_knowledge_base,
            CHECK_1583_STATUS: self.check_1583_status,
            LOOKUP_CUSTOMER_FOR_GREETING: self.lookup_customer_for_greeting,
        }

    async def dispatch(self, invocation: ToolInvocation, caller_number: Optional[str]) -> ToolResponseEntry:
        handler = self._handlers.get(invocation.name or "")
        if handler is None:
            logger.warning("Unknown tool requested: %s", invocation.name)
            result = _json({"success": False, "error": f"Unknown tool: {invocation.name}"})
        else:
            try:
                result = await handler(invocation, caller_number)
            except Exception:
                logger.exception("Tool %s failed", invocation.name)
                result = _json({"success": False, "error": f"Tool {invocation.name} failed"})
        return ToolResponseEntry(tool_call_id=invocation.id, result=result)

    async def search_knowledge_base(self, invocation: ToolInvocation, caller_number: Optional[str]) -> str:
        try:
            query = invocation.arguments().get("query") or ""
        except InvalidToolArguments as exc:
            # a bare string is taken as the query itself
            query = exc.raw
        query = str(query).strip()
        if not query:
            return EMPTY_QUERY_REPLY

        logger.info("Knowledge search tool called (%d chars)", len(query))
        return await self.search.search(query)

    def _phone_argument(self, invocation: ToolInvocation, caller_number: Optional[str]) -> Optional[str]:
        phone = invocation.arguments().get("phone_number")
        return str(phone) if phone else caller_number

    async def check_1583_status(self, invocation: ToolInvocation, caller_number: Optional[str]) -> str:
        try:
            phone = self._phone_argument(invocation, caller_number)
        except InvalidToolArguments:
            logger.warning("check_1583_status received unparseable arguments")
            phone = caller_number

        if not phone:
            return _json({"success": False, "error": NO_PHONE_ERROR, "needsPhoneNumber": True})
        if not self.crm.configured:
            logger.error(CRM_NOT_CONFIGURED_ERROR)
            return _json({"success": False, "error": CRM_NOT_CONFIGURED_ERROR})

        result = await self.crm.lookup_by_phone(phone)
        return result.to_result_string()

    async def lookup_customer_for_greeting(self, invocation: ToolInvocation, caller_number: Optional[str]) -> str:
        try:
            phone = self._phone_argument(invocation, caller_number)
        except InvalidToolArguments:
            logger.warning("lookup_customer_for_greeting received unparseable arguments")
            phone = caller_number

        if not phone:
            return _json(
                {
                    "success": True,
                    "isKnownCustomer": False,
                    "firstName": "",
                    "message": "No caller phone number available",
                }
            )
        if not self.crm.configured:
            logger.error(CRM_NOT_CONFIGURED_ERROR)
            return _json({"success": False, "isKnownCustomer": False, "error": CRM_NOT_CONFIGURED_ERROR})

        result = await self.crm.lookup_by_phone(phone)
        if result.success and result.contact:
            return _json(
                {
                    "success": True,
                    "isKnownCustomer": True,
                    "firstName": result.contact.first_name,
                    "displayName": result.contact.display_name,
                }
            )
        return _json({"success": True, "isKnownCustomer": False, "firstName": ""})
