"""
Shared fixtures: in-memory database, fake providers and a canned AI gateway.
"""
import json

import httpx
import pytest
from openai import AsyncOpenAI
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from insights_engine.ai.client import CompletionClient
from insights_engine.database.models import Base
from insights_engine.ingestion.search_providers import ProviderResponse, SearchProvider, SearchResult


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class FakeProvider(SearchProvider):
    """Returns canned results, an error response, or raises."""

    def __init__(self, name, results=None, error=None, exc=None):
        super().__init__()
        self.name = name
        self._results = results or []
        self._error = error
        self._exc = exc
        self.calls = []

    async def search(self, query, limit=20):
        self.calls.append((query, limit))
        if self._exc is not None:
            raise self._exc
        if self._error is not None:
            return ProviderResponse(error=self._error)
        return ProviderResponse(results=list(self._results), strategy="fake")


def make_result(source="Patents", id="1", title="A result", abstract=None, date=None, **kwargs):
    return SearchResult(source=source, id=id, title=title, url=f"https://example.org/{id}",
                        abstract=abstract, date=date, **kwargs)


def ai_client(status=200, content="Generated text", captured=None):
    """CompletionClient whose gateway answers with a fixed status / content."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(json.loads(request.content))
        if status != 200:
            return httpx.Response(status, json={"error": {"message": f"status {status}"}})
        return httpx.Response(200, json={
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }],
        })

    client = AsyncOpenAI(
        api_key="test-key",
        base_url="https://gateway.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return CompletionClient(client=client, model="test-model")
