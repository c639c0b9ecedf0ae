import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from notes_api.services.notes.store import (
    StorageError,
    SubjectNotFoundError,
    decode_embedding,
    encode_embedding,
    fetch_chunks,
    get_subject,
    load_embedded_chunks,
)
from notes_api.services.notes.types import Chunk
from tests.conftest import SeedSubject


class _BrokenSession:
    def scalars(self, *args: object, **kwargs: object) -> None:
        raise OperationalError("SELECT", {}, Exception("database is down"))

    def scalar(self, *args: object, **kwargs: object) -> None:
        raise OperationalError("SELECT", {}, Exception("database is down"))


def test_embedding_blob_roundtrip() -> None:
    values = [0.25, -1.5, 3.0]

    assert decode_embedding(encode_embedding(values)) == pytest.approx(values)


def test_get_subject_is_scoped_to_user(session: Session, seed_subject: SeedSubject) -> None:
    subject, _ = seed_subject(user_id="user-1", name="Biology", chunks=[])

    found = get_subject(session, user_id="user-1", subject_id=subject.subject_id)
    assert found.name == "Biology"

    with pytest.raises(SubjectNotFoundError):
        get_subject(session, user_id="user-2", subject_id=subject.subject_id)


def test_fetch_chunks_keeps_requested_order_and_drops_unknown_ids(
    session: Session,
    seed_subject: SeedSubject,
) -> None:
    subject, chunk_ids = seed_subject(
        chunks=[
            ("bio.md", "1", "Plants use chlorophyll."),
            ("bio.md", "2", "Mitochondria release energy."),
        ]
    )

    chunks = fetch_chunks(
        session,
        user_id="user-1",
        subject_id=subject.subject_id,
        chunk_ids=[chunk_ids[1], "deleted-chunk", chunk_ids[0]],
    )

    assert chunks == [
        Chunk(
            chunk_id=chunk_ids[1],
            file_name="bio.md",
            page_range="2",
            content="Mitochondria release energy.",
        ),
        Chunk(
            chunk_id=chunk_ids[0],
            file_name="bio.md",
            page_range="1",
            content="Plants use chlorophyll.",
        ),
    ]


def test_fetch_chunks_never_crosses_user_or_subject_scope(
    session: Session,
    seed_subject: SeedSubject,
) -> None:
    mine, _ = seed_subject(user_id="user-1", chunks=[("a.md", "1", "Mine.")])
    _, other_ids = seed_subject(user_id="user-2", chunks=[("b.md", "1", "Theirs.")])

    chunks = fetch_chunks(
        session,
        user_id="user-1",
        subject_id=mine.subject_id,
        chunk_ids=other_ids,
    )

    assert chunks == []


def test_fetch_chunks_with_no_ids_skips_the_database() -> None:
    assert fetch_chunks(_BrokenSession(), user_id="u", subject_id="s", chunk_ids=[]) == []


def test_fetch_chunks_wraps_database_failures() -> None:
    with pytest.raises(StorageError, match="Failed to load context chunks"):
        fetch_chunks(_BrokenSession(), user_id="u", subject_id="s", chunk_ids=["c1"])


def test_load_embedded_chunks_returns_vectors(session: Session, seed_subject: SeedSubject) -> None:
    subject, chunk_ids = seed_subject(chunks=[("bio.md", "1", "light light energy")])

    stored = load_embedded_chunks(session, user_id="user-1", subject_id=subject.subject_id)

    assert [item.chunk.chunk_id for item in stored] == chunk_ids
    assert stored[0].embedding[:3] == pytest.approx([0.1, 0.0, 2.0])
