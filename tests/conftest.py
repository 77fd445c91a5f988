"""
Pytest configuration and fixtures
"""

import os
from typing import Callable, Dict, List, Optional

import httpx
import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("FRESHSALES_API_TOKEN", "test-freshsales-token")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "AKIDTEST")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from voice_router.config import Settings
from voice_router.event_router import WebhookRouter
from voice_router.integrations.freshsales import FreshsalesClient
from voice_router.integrations.kb_search import KnowledgeBaseSearch
from voice_router.knowledge.loader import load_critical_answers


def make_settings(**overrides) -> Settings:
    """Settings with every value explicit so the host environment can't leak in."""
    values = {
        "freshsales_api_token": "test-freshsales-token",
        "freshsales_base_url": "https://crm.example.com/api",
        "aws_access_key_id": "AKIDTEST",
        "aws_secret_access_key": "test-secret-key",
        "aws_region": "us-east-2",
        "kb_function_name": "kb-search",
        "kb_search_timeout": 2.0,
        "critical_answers_path": None,
        "vapi_assistant_id": "assistant-123",
        "company_name": "iPostal1",
        "debug_mode": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class CrmStub:
    """MockTransport handler answering CRM lookups from a {(q, f): contact} map."""

    def __init__(self, contacts: Optional[Dict[tuple, dict]] = None, status_code: int = 200):
        self.contacts = contacts or {}
        self.status_code = status_code
        self.calls: List[tuple] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("q")
        field = request.url.params.get("f")
        self.calls.append((query, field))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"errors": "boom"})
        contact = self.contacts.get((query, field))
        return httpx.Response(200, json={"contacts": {"contacts": [contact] if contact else []}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class SearchStub:
    """MockTransport handler for the search function invocation endpoint."""

    def __init__(self, payload: Optional[dict] = None, status_code: int = 200):
        self.payload = payload if payload is not None else {"results": []}
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


JANE_DOE = {
    "id": 1,
    "display_name": "Jane Doe",
    "custom_field": {
        "cf_mailbox_id": "MB-1001",
        "cf_1583_doc_status": "Approved",
        "cf_flagged_for_resubmission": "No",
        "cf_belongs_to": "acct-77",
    },
    "tags": ["vip"],
}


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def critical_answers():
    return load_critical_answers()


@pytest.fixture
def crm_stub() -> CrmStub:
    return CrmStub()


@pytest.fixture
def search_stub() -> SearchStub:
    return SearchStub()


@pytest.fixture
def build_router(critical_answers) -> Callable[..., WebhookRouter]:
    """Factory wiring a WebhookRouter to stubbed CRM and search transports."""

    def _build(crm_stub: CrmStub, search_stub: SearchStub, settings: Optional[Settings] = None, debug: bool = False):
        settings = settings or make_settings()
        return WebhookRouter(
            settings,
            crm=FreshsalesClient(settings, transport=crm_stub.transport),
            search=KnowledgeBaseSearch(settings, critical_answers, transport=search_stub.transport),
            debug=debug,
        )

    return _build
