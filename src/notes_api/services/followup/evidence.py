from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from notes_api.services.followup.types import EvidenceSet
from notes_api.services.notes.embedding_client import EmbeddingClient
from notes_api.services.notes.similarity import search_similar_chunks
from notes_api.services.notes.store import fetch_chunks

logger = logging.getLogger(__name__)


def assemble_evidence_set(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
    question: str,
    prior_chunk_ids: list[str],
    embedding_client: EmbeddingClient,
    match_count: int = 3,
) -> EvidenceSet:
    """Collect the chunks a follow-up answer may cite.

    Prior chunks come first, then new similarity matches for ``question``.
    Prior ids that no longer resolve are dropped. A failing lookup raises
    ``StorageError``; a failing similarity search only shrinks the set.
    """
    base_chunk_ids = list(dict.fromkeys(prior_chunk_ids))

    evidence: EvidenceSet = {}
    for chunk in fetch_chunks(
        session,
        user_id=user_id,
        subject_id=subject_id,
        chunk_ids=base_chunk_ids,
    ):
        evidence[chunk.chunk_id] = chunk

    dropped = len(base_chunk_ids) - len(evidence)
    if dropped:
        logger.info("Dropped %d prior chunk id(s) that no longer resolve", dropped)

    try:
        matches = search_similar_chunks(
            session,
            user_id=user_id,
            subject_id=subject_id,
            question=question,
            embedding_client=embedding_client,
            match_count=match_count,
        )
    except Exception:
        # Search is best-effort; any failure leaves the prior evidence as is.
        logger.warning("Optional similarity search for follow-up failed", exc_info=True)
        matches = []

    for match in matches:
        evidence.setdefault(match.chunk.chunk_id, match.chunk)

    logger.debug(
        "Evidence set: %d prior, %d matched, %d total",
        len(base_chunk_ids) - dropped,
        len(matches),
        len(evidence),
    )
    return evidence
