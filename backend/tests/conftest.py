import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid  # noqa: E402
from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from memopad import config, llm  # noqa: E402
from memopad.database import Base, make_engine  # noqa: E402
from memopad.main import app, get_repository  # noqa: E402
from memopad.repository import MemoRepository  # noqa: E402
from memopad.schemas import Memo  # noqa: E402
from memopad.storage import TableClient  # noqa: E402
from memopad.time_utils import now_iso  # noqa: E402


class FakeCompletion:
    """Stands in for ``llm.complete`` and records every call."""

    def __init__(self):
        self.reply = ""
        self.error: Optional[Exception] = None
        self.calls: List[dict] = []

    def __call__(self, prompt: str, max_tokens: int, temperature: float) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'memos.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage_client(engine) -> TableClient:
    return TableClient(engine)


@pytest.fixture
def repository(storage_client) -> MemoRepository:
    return MemoRepository(storage_client)


@pytest.fixture
def broken_repository(tmp_path) -> MemoRepository:
    """Repository whose backend has no memos table, so every query fails."""
    engine = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield MemoRepository(TableClient(engine))
    engine.dispose()


@pytest.fixture
def make_memo():
    def factory(
        title: str = "Title",
        content: str = "Content",
        category: str = "idea",
        tags: Optional[List[str]] = None,
        summary: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> Memo:
        timestamp = created_at or now_iso()
        return Memo(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            category=category,
            tags=tags or [],
            summary=summary,
            created_at=timestamp,
            updated_at=timestamp,
        )

    return factory


@pytest.fixture
def fake_llm(monkeypatch) -> FakeCompletion:
    fake = FakeCompletion()
    monkeypatch.setattr(llm, "complete", fake)
    monkeypatch.setattr(config, "LLM_API_KEY", "test-key")
    return fake


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
