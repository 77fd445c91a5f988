"""Webhook endpoints for inbound voice-platform events.

Every endpoint answers 200 with a JSON body. The platform penalizes
non-2xx or slow responses, so even an unparseable body is acknowledged.
"""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..event_router import ACKNOWLEDGEMENT, WebhookRouter, debug_probe

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_webhook_router() -> WebhookRouter:
    """Build the process-wide router from the environment settings."""
    return WebhookRouter.from_settings(get_settings())


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Webhook received but JSON parsing failed; raw body length=%d", len(raw))
        return None


@router.post("/server")
@router.post("/tools/freshsales-lookup")
@router.post("/tools/customer-lookup")
@router.post("/tools/kb-search")
async def server_events(
    request: Request, webhook_router: WebhookRouter = Depends(get_webhook_router)
) -> JSONResponse:
    """Receive a voice-platform webhook and return the platform response body."""
    body = await _read_json(request)
    if body is None:
        return JSONResponse(content=dict(ACKNOWLEDGEMENT))

    content: Dict[str, Any] = await webhook_router.handle(body)
    return JSONResponse(content=content)


@router.post("/tools/debug")
async def tools_debug(request: Request) -> JSONResponse:
    """Connectivity probe for tool server URLs."""
    body = await _read_json(request)
    timestamp = datetime.now(timezone.utc).isoformat()
    return JSONResponse(content=debug_probe(body or {}, timestamp))
