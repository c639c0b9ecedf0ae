from __future__ import annotations

import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notes_api.services.notes.embedding_client import (
    EmbeddingClient,
    EmbeddingClientError,
    embed_text,
)
from notes_api.services.notes.store import load_embedded_chunks
from notes_api.services.notes.types import ChunkMatch


class SearchError(RuntimeError):
    pass


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def match_chunks(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
    query_embedding: list[float],
    match_count: int,
) -> list[ChunkMatch]:
    if not query_embedding:
        raise ValueError("query_embedding must not be empty")

    dimensions = len(query_embedding)
    matches = [
        ChunkMatch(chunk=stored.chunk, score=_cosine(query_embedding, stored.embedding))
        for stored in load_embedded_chunks(session, user_id=user_id, subject_id=subject_id)
        if len(stored.embedding) == dimensions
    ]
    matches.sort(key=lambda match: match.score, reverse=True)
    return matches[: max(1, match_count)]


def search_similar_chunks(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
    question: str,
    embedding_client: EmbeddingClient,
    match_count: int = 3,
) -> list[ChunkMatch]:
    try:
        query_embedding = embed_text(embedding_client, question)
        return match_chunks(
            session,
            user_id=user_id,
            subject_id=subject_id,
            query_embedding=query_embedding,
            match_count=match_count,
        )
    except (EmbeddingClientError, SQLAlchemyError, ValueError) as exc:
        raise SearchError(f"Similarity search failed: {exc}") from exc
