from __future__ import annotations

from pathlib import Path

from sqlalchemy.orm import Session

from notes_api.services.notes.chunker import chunk_documents
from notes_api.services.notes.embedding_client import EmbeddingClient
from notes_api.services.notes.loader import load_documents
from notes_api.services.notes.store import add_chunks, create_subject
from notes_api.services.notes.types import IngestionSummary


def ingest_notes(
    session: Session,
    *,
    user_id: str,
    subject_name: str,
    source_dir: Path,
    chunk_size: int,
    chunk_overlap: int,
    embedding_client: EmbeddingClient,
) -> IngestionSummary:
    """Create a subject for ``user_id`` and store the embedded chunks of ``source_dir``.

    The caller owns the transaction and commits it.
    """
    if not user_id.strip():
        raise ValueError("user_id must not be empty")
    if not subject_name.strip():
        raise ValueError("subject_name must not be empty")
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")

    documents = load_documents(source_dir)
    chunks = chunk_documents(
        documents,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )
    embeddings = embedding_client.embed_texts([chunk.content for chunk in chunks])

    subject = create_subject(session, user_id=user_id, name=subject_name.strip())
    add_chunks(session, subject, chunks=chunks, embeddings=embeddings)

    return IngestionSummary(
        subject_id=subject.subject_id,
        document_count=len(documents),
        chunk_count=len(chunks),
    )
