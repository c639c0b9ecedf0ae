from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from notes_api.config import get_settings
from notes_api.db import Base, get_engine
from notes_api.main import app
from notes_api.services.notes.store import Subject, add_chunks, create_subject
from notes_api.services.notes.types import PageChunk
from tests.fakes import KeywordEmbeddingClient

SeedSubject = Callable[..., tuple[Subject, list[str]]]


@pytest.fixture(autouse=True)
def reset_api_caches() -> Iterator[None]:
    get_settings.cache_clear()
    get_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Engine]:
    sqlite_db_path = tmp_path / "api-tests.db"
    monkeypatch.setenv("API_DATABASE_URL", f"sqlite+pysqlite:///{sqlite_db_path}")
    monkeypatch.setenv("API_DB_ECHO", "false")

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine: Engine) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seed_subject(engine: Engine) -> SeedSubject:
    """Store a subject and its chunks; chunks are (file_name, page_range, content)."""

    def _seed(
        *,
        user_id: str = "user-1",
        name: str = "Biology",
        chunks: list[tuple[str, str, str]],
    ) -> tuple[Subject, list[str]]:
        page_chunks = [
            PageChunk(file_name=file_name, page_range=page_range, chunk_index=index, content=content)
            for index, (file_name, page_range, content) in enumerate(chunks)
        ]
        embeddings = KeywordEmbeddingClient().embed_texts([chunk.content for chunk in page_chunks])
        with Session(engine) as session:
            subject = create_subject(session, user_id=user_id, name=name)
            chunk_ids = add_chunks(session, subject, chunks=page_chunks, embeddings=embeddings)
            session.commit()
        return subject, chunk_ids

    return _seed
