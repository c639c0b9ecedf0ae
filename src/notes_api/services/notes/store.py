from __future__ import annotations

from array import array
from dataclasses import dataclass
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notes_api.models import NoteChunkRecord, SubjectRecord
from notes_api.services.notes.types import Chunk, PageChunk


class StorageError(RuntimeError):
    pass


class SubjectNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class Subject:
    subject_id: str
    user_id: str
    name: str


@dataclass(frozen=True)
class EmbeddedChunk:
    chunk: Chunk
    embedding: list[float]


def encode_embedding(values: list[float]) -> bytes:
    vector = array("f", values)
    return vector.tobytes()


def decode_embedding(blob: bytes) -> list[float]:
    vector = array("f")
    vector.frombytes(blob)
    return vector.tolist()


def _to_chunk(record: NoteChunkRecord) -> Chunk:
    return Chunk(
        chunk_id=record.id,
        file_name=record.file_name,
        page_range=record.page_range,
        content=record.content,
    )


def get_subject(session: Session, *, user_id: str, subject_id: str) -> Subject:
    try:
        record = session.scalar(
            select(SubjectRecord)
            .where(SubjectRecord.id == subject_id)
            .where(SubjectRecord.user_id == user_id)
        )
    except SQLAlchemyError as exc:
        raise StorageError(f"Failed to load subject {subject_id}: {exc}") from exc

    if record is None:
        raise SubjectNotFoundError("Subject not found for user")
    return Subject(subject_id=record.id, user_id=record.user_id, name=record.name)


def fetch_chunks(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
    chunk_ids: list[str],
) -> list[Chunk]:
    """Load chunks by id within one user's subject.

    Ids that do not exist in the scope are left out of the result. The
    returned chunks follow the order of ``chunk_ids``.
    """
    if not chunk_ids:
        return []

    try:
        records = session.scalars(
            select(NoteChunkRecord)
            .where(NoteChunkRecord.user_id == user_id)
            .where(NoteChunkRecord.subject_id == subject_id)
            .where(NoteChunkRecord.id.in_(chunk_ids))
        ).all()
    except SQLAlchemyError as exc:
        raise StorageError(f"Failed to load context chunks: {exc}") from exc

    by_id = {record.id: _to_chunk(record) for record in records}
    return [by_id[chunk_id] for chunk_id in chunk_ids if chunk_id in by_id]


def load_embedded_chunks(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
) -> list[EmbeddedChunk]:
    records = session.scalars(
        select(NoteChunkRecord)
        .where(NoteChunkRecord.user_id == user_id)
        .where(NoteChunkRecord.subject_id == subject_id)
        .order_by(NoteChunkRecord.file_name, NoteChunkRecord.chunk_index)
    ).all()

    chunks: list[EmbeddedChunk] = []
    for record in records:
        embedding = decode_embedding(record.embedding)
        if len(embedding) != record.embedding_dim:
            continue
        chunks.append(EmbeddedChunk(chunk=_to_chunk(record), embedding=embedding))
    return chunks


def create_subject(session: Session, *, user_id: str, name: str) -> Subject:
    record = SubjectRecord(id=str(uuid.uuid4()), user_id=user_id, name=name)
    session.add(record)
    session.flush()
    return Subject(subject_id=record.id, user_id=record.user_id, name=record.name)


def add_chunks(
    session: Session,
    subject: Subject,
    *,
    chunks: list[PageChunk],
    embeddings: list[list[float]],
) -> list[str]:
    if len(chunks) != len(embeddings):
        raise ValueError("chunks and embeddings must have the same length")

    records = [
        NoteChunkRecord(
            id=str(uuid.uuid4()),
            user_id=subject.user_id,
            subject_id=subject.subject_id,
            file_name=chunk.file_name,
            page_range=chunk.page_range,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            embedding=encode_embedding(embedding),
            embedding_dim=len(embedding),
        )
        for chunk, embedding in zip(chunks, embeddings)
    ]
    session.add_all(records)
    session.flush()
    return [record.id for record in records]
