import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from credibot.ai_feature.service import Completion, CompletionError, CompletionService
from credibot.api.deps import get_completion_service, get_table_reader
from credibot.core.config import SmartChatConfig
from credibot.core.schemas import Usage
from credibot.core.storage import TableReader
from credibot.core.smart_chat.pipeline import SmartChatPipeline
from credibot.main import app


class FakeCompletionService(CompletionService):
    """Replays canned replies; an Exception in the list is raised instead."""

    def __init__(self, *replies):
        super().__init__(api_key="test-key")
        self.replies = list(replies)
        self.calls = []

    async def complete(self, user_text, model, max_tokens, temperature, system=None):
        self.calls.append(
            {
                "user_text": user_text,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": system,
            }
        )
        if not self.replies:
            raise CompletionError("no more canned replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return Completion(
            text=reply,
            model=model,
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )


class FakeTableReader(TableReader):
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error
        self.calls = []

    async def read(self, table_name, limit, order_by, descending=True):
        self.calls.append(
            {
                "table_name": table_name,
                "limit": limit,
                "order_by": order_by,
                "descending": descending,
            }
        )
        if self.error is not None:
            raise self.error
        return list(self.records)


def make_records(count):
    return [
        {
            "id": i,
            "nome": f"Cliente {i}",
            "score_credito": 600 + i,
            "classe_risco": "B",
            "renda_mensal": 5000,
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def make_llm():
    return FakeCompletionService


@pytest.fixture
def make_reader():
    return FakeTableReader


@pytest.fixture
def client_rows():
    """Factory for credit client rows"""
    return make_records


@pytest.fixture
def make_pipeline():
    """
    make_pipeline(["reply 1", "reply 2"], records=[...])
    -> (pipeline, fake llm, fake reader)
    """

    def _make(replies, records=None, error=None, config=None):
        llm = FakeCompletionService(*replies)
        reader = FakeTableReader(records=records, error=error)
        pipeline = SmartChatPipeline(llm, reader, config or SmartChatConfig())
        return pipeline, llm, reader

    return _make


# Client
@pytest_asyncio.fixture(scope="function")
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def override_collaborators():
    """Swap the real language model and storage for fakes in the app."""

    def _override(llm, reader=None):
        app.dependency_overrides[get_completion_service] = lambda: llm
        app.dependency_overrides[get_table_reader] = lambda: reader or FakeTableReader()

    yield _override
    app.dependency_overrides.clear()
