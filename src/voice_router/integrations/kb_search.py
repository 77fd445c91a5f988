"""Knowledge-base search through a directly invoked cloud function.

The function is called over HTTPS with a SigV4-signed request. Results
are flattened into a single spoken line because the voice platform does
not accept multi-line tool results.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import Settings
from ..exceptions import ConfigurationError, SearchInvocationError
from ..knowledge.loader import CriticalAnswer, match_critical_answer
from ..signing import sign_request

logger = logging.getLogger(__name__)

SERVICE = "lambda"

NO_RESULTS_REPLY = (
    "I couldn't find specific information about that in our knowledge base. "
    "Would you like me to connect you with an agent?"
)
UNAVAILABLE_REPLY = (
    "I'm having trouble accessing our knowledge base right now. "
    "Let me connect you with an agent who can help."
)
NOT_CONFIGURED_REPLY = (
    "Knowledge base search is not configured on this server. "
    "Let me connect you with an agent who can help."
)

BOILERPLATE_PHRASES = (
    "was this article helpful?",
    "still need help?",
    "related articles",
    "table of contents",
    "back to top",
)

_HTML_TAG = re.compile(r"<[^>]*>")
_HTML_ENTITY = re.compile(r"&(nbsp|amp|quot|#39|lt|gt);")
_ENTITIES = {"nbsp": " ", "amp": "&", "quot": '"', "#39": "'", "lt": "<", "gt": ">"}


def clean_passage(text: str) -> str:
    """Strip markup and boilerplate and collapse whitespace."""
    text = _HTML_TAG.sub(" ", text or "")
    text = _HTML_ENTITY.sub(lambda m: _ENTITIES[m.group(1)], text)
    for phrase in BOILERPLATE_PHRASES:
        text = re.sub(re.escape(phrase), " ", text, flags=re.IGNORECASE)
    return " ".join(text.split())


def single_line(text: str) -> str:
    return " ".join(text.split())


class KnowledgeBaseSearch:
    """Invoke the search function and format its answer for speech."""

    def __init__(
        self,
        settings: Settings,
        critical_answers: Sequence[CriticalAnswer] = (),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.critical_answers = list(critical_answers)
        self._transport = transport

    @property
    def endpoint(self) -> str:
        host = f"lambda.{self.settings.aws_region}.amazonaws.com"
        return f"https://{host}/2015-03-31/functions/{self.settings.kb_function_name}/invocations"

    async def search(self, query: str) -> str:
        """Answer ``query`` with a single spoken line. Never raises."""
        override = match_critical_answer(query, self.critical_answers)
        if override is not None:
            logger.info("Critical answer '%s' used for query", override.name)
            return single_line(override.answer)

        try:
            data = await asyncio.wait_for(self.invoke(query), timeout=self.settings.kb_search_timeout)
        except ConfigurationError as exc:
            logger.error("Knowledge search unavailable: %s", exc.to_dict())
            return NOT_CONFIGURED_REPLY
        except asyncio.TimeoutError:
            logger.warning("Knowledge search timed out after %.1fs", self.settings.kb_search_timeout)
            return UNAVAILABLE_REPLY
        except (SearchInvocationError, httpx.HTTPError) as exc:
            logger.warning("Knowledge search failed: %s", exc)
            return UNAVAILABLE_REPLY
        except Exception:
            logger.exception("Unexpected knowledge search error")
            return UNAVAILABLE_REPLY

        try:
            reply = self.format_results(data.get("results") or [])
        except (AttributeError, TypeError):
            logger.exception("Knowledge search returned malformed results")
            return UNAVAILABLE_REPLY
        logger.info("Knowledge search answered (%d chars)", len(reply))
        return reply

    async def invoke(self, query: str) -> Dict[str, Any]:
        """POST the signed request and return the decoded response body."""
        if not self.settings.search_configured:
            raise ConfigurationError("AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY")

        body = json.dumps({"query": query, "k": self.settings.kb_result_count})
        headers = sign_request(
            "POST",
            self.endpoint,
            body,
            access_key_id=self.settings.aws_access_key_id,
            secret_key=self.settings.aws_secret_access_key,
            region=self.settings.aws_region,
            service=SERVICE,
        )

        async with httpx.AsyncClient(timeout=self.settings.kb_search_timeout, transport=self._transport) as client:
            resp = await client.post(self.endpoint, content=body, headers=headers)

        if not resp.is_success:
            raise SearchInvocationError(
                f"Search function returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError:
            raise SearchInvocationError("Search function returned a non-JSON body", resp.status_code)
        if not isinstance(data, dict):
            raise SearchInvocationError("Search function returned an unexpected body", resp.status_code)
        return data

    def format_results(self, results: List[Dict[str, Any]]) -> str:
        """Join the usable top-ranked passages into one line."""
        passages: List[str] = []
        for item in results[: self.settings.kb_top_results]:
            meta = (item or {}).get("meta") or {}
            text = clean_passage(meta.get("text_cleaned") or meta.get("raw_text") or "")
            # skip stub articles
            if len(text) < self.settings.kb_min_passage_length:
                continue
            text = text[: self.settings.kb_max_passage_length].rstrip()
            title = single_line(meta.get("article_title") or "")
            passages.append(f'From "{title}": {text}' if title else text)
            if len(passages) >= self.settings.kb_max_passages:
                break

        if not passages:
            return NO_RESULTS_REPLY
        return single_line(" ".join(passages))
