"""Normalization of inbound voice-platform webhook bodies.

The platform has shipped several payload shapes across releases: the
event may be wrapped in ``message`` or sent bare, and tool calls may
arrive as ``toolCallList``, ``toolCalls`` or ``toolWithToolCallList``.
``parse_event`` folds all of them into one WebhookEvent; nothing past
this module looks at raw payload keys.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

from .schemas import EventKind, ToolInvocation, WebhookEvent

ASSISTANT_REQUEST = "assistant-request"
TOOL_CALLS = "tool-calls"

NON_ACTIONABLE_TYPES = frozenset(
    {
        "status-update",
        "transcript",
        "conversation-update",
        "speech-update",
        "end-of-call-report",
        "hang",
        "user-interrupted",
        "model-output",
        "voice-input",
        "language-change-detected",
        "phone-call-control",
    }
)

NATIVE_LIST_KEYS = ("toolCallList", "toolCalls")
WRAPPED_LIST_KEY = "toolWithToolCallList"


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _customer_number(message: Mapping[str, Any], body: Mapping[str, Any]) -> Optional[str]:
    """Call-scoped customer beats a bare customer; message beats body."""
    candidates = (
        _mapping(message.get("call")).get("customer"),
        _mapping(body.get("call")).get("customer"),
        message.get("customer"),
        body.get("customer"),
    )
    for customer in candidates:
        number = _mapping(customer).get("number")
        if number:
            return str(number)
    return None


def _name(value: Any) -> Optional[str]:
    return str(value) if value else None


def _arguments(value: Any) -> Any:
    if value is None or isinstance(value, (str, dict)):
        return value
    return json.dumps(value)


def _native_invocation(item: Dict[str, Any], index: int) -> ToolInvocation:
    function = _mapping(item.get("function"))
    arguments = item.get("parameters")
    if arguments is None:
        arguments = item.get("arguments")
    if arguments is None:
        arguments = function.get("arguments")
    return ToolInvocation(
        id=str(item.get("id") or f"unknown-{index}"),
        name=_name(item.get("name") or function.get("name")),
        raw_arguments=_arguments(arguments),
    )


def _wrapped_invocation(item: Dict[str, Any], index: int) -> ToolInvocation:
    tool_call = _mapping(item.get("toolCall"))
    call_function = _mapping(tool_call.get("function"))
    arguments = tool_call.get("parameters")
    if arguments is None:
        arguments = call_function.get("arguments")
    return ToolInvocation(
        id=str(tool_call.get("id") or item.get("id") or f"unknown-{index}"),
        name=_name(item.get("name") or _mapping(item.get("function")).get("name") or call_function.get("name")),
        raw_arguments=_arguments(arguments),
    )


def extract_tool_invocations(message: Dict[str, Any], body: Dict[str, Any]) -> List[ToolInvocation]:
    """Return invocations from the first non-empty tool list, in input order."""
    for container in (message, body):
        for key in NATIVE_LIST_KEYS:
            items = container.get(key)
            if isinstance(items, list) and items:
                return [_native_invocation(_mapping(item), i) for i, item in enumerate(items)]

    for container in (message, body):
        items = container.get(WRAPPED_LIST_KEY)
        if isinstance(items, list) and items:
            return [_wrapped_invocation(_mapping(item), i) for i, item in enumerate(items)]

    return []


def has_tool_lists(message: Dict[str, Any], body: Dict[str, Any]) -> bool:
    keys = NATIVE_LIST_KEYS + (WRAPPED_LIST_KEY,)
    return any(isinstance(c.get(k), list) for c in (message, body) for k in keys)


def parse_event(body: Any) -> WebhookEvent:
    """Classify a raw webhook body and normalize it into a WebhookEvent."""
    body = _mapping(body)
    message = _mapping(body.get("message")) or body

    event_type = str(message.get("type") or body.get("type") or "").lower()
    caller_number = _customer_number(message, body)
    direct_phone = body.get("phone_number")
    invocations = extract_tool_invocations(message, body)

    if event_type == ASSISTANT_REQUEST:
        kind = EventKind.ASSISTANT_REQUEST
    elif event_type in NON_ACTIONABLE_TYPES:
        kind = EventKind.NON_ACTIONABLE
    elif event_type == TOOL_CALLS or invocations or has_tool_lists(message, body):
        kind = EventKind.TOOL_CALLS
    else:
        kind = EventKind.UNRECOGNIZED

    return WebhookEvent(
        kind=kind,
        event_type=event_type,
        caller_number=caller_number,
        direct_phone=str(direct_phone) if direct_phone else None,
        tool_invocations=tuple(invocations),
        received_keys=tuple(body.keys()),
    )
