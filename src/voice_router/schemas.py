"""Pydantic schemas for webhook payloads and responses."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidToolArguments


class EventKind(str, Enum):
    """Semantic type of an inbound webhook event."""

    ASSISTANT_REQUEST = "assistant-request"
    TOOL_CALLS = "tool-calls"
    NON_ACTIONABLE = "non-actionable"
    UNRECOGNIZED = "unrecognized"


class ToolInvocation(BaseModel):
    """One tool call requested by the assistant, in normalized form."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    raw_arguments: Union[str, Dict[str, Any], None] = None

    def arguments(self) -> Dict[str, Any]:
        """Resolve the argument mapping.

        Arguments arrive absent, as a JSON string, or already structured.
        Raises InvalidToolArguments when a string does not decode to an object.
        """
        if self.raw_arguments is None or self.raw_arguments == "":
            return {}
        if isinstance(self.raw_arguments, dict):
            return dict(self.raw_arguments)
        try:
            parsed = json.loads(self.raw_arguments)
        except (TypeError, ValueError):
            raise InvalidToolArguments(str(self.raw_arguments))
        if not isinstance(parsed, dict):
            raise InvalidToolArguments(str(self.raw_arguments))
        return parsed


class WebhookEvent(BaseModel):
    """Normalized inbound event, built once per request by parse_event."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    event_type: str = ""
    caller_number: Optional[str] = None
    direct_phone: Optional[str] = None
    tool_invocations: Tuple[ToolInvocation, ...] = ()
    received_keys: Tuple[str, ...] = ()


UNKNOWN_NAME = "Unknown"


class Contact(BaseModel):
    """Projection of a CRM contact exposed to the assistant."""

    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(UNKNOWN_NAME, alias="displayName")
    mailbox_id: str = Field("", alias="mailboxId")
    approval_status: str = Field("No Docs", alias="approvalStatus")
    flagged_for_resubmission: str = Field("No", alias="flaggedForResubmission")
    belongs_to: str = Field("", alias="belongsTo")
    tags: List[str] = Field(default_factory=list)

    @property
    def first_name(self) -> str:
        """First token of the display name; empty for the placeholder name."""
        if self.display_name == UNKNOWN_NAME:
            return ""
        parts = self.display_name.split()
        return parts[0] if parts else ""


class LookupResult(BaseModel):
    """Outcome of a phone-number lookup against the CRM."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    contact: Optional[Contact] = None
    error: Optional[str] = None
    needs_phone_number: Optional[bool] = Field(None, alias="needsPhoneNumber")
    phone_searched: Optional[str] = Field(None, alias="phoneSearched")
    field_searched: Optional[str] = Field(None, alias="fieldSearched")
    variants_tried: List[str] = Field(default_factory=list, alias="variantsTried")

    def to_result_string(self) -> str:
        """Serialize for the string-only tool result contract."""
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))


class ToolResponseEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_call_id: str = Field(alias="toolCallId")
    result: str


class ToolResultsResponse(BaseModel):
    results: List[ToolResponseEntry]

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class HealthResponse(BaseModel):
    status: str = "ok"
