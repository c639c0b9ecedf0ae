from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from notes_api.llm import CompletionClient
from notes_api.services.followup.evidence import assemble_evidence_set
from notes_api.services.followup.extracts import (
    MAX_SUPPORTING_EXTRACTS,
    select_supporting_extracts,
)
from notes_api.services.followup.grounded_answer import request_grounded_answer
from notes_api.services.followup.sanitizer import sanitize_answer
from notes_api.services.followup.types import Citation, EvidenceSet, FollowupResult
from notes_api.services.notes.embedding_client import EmbeddingClient
from notes_api.services.notes.store import get_subject

logger = logging.getLogger(__name__)


def _attribute_citations(citations: list[Citation], evidence: EvidenceSet) -> list[Citation]:
    # file name and page range come from storage, not from the model
    return [
        Citation(
            chunk_id=citation.chunk_id,
            file_name=evidence[citation.chunk_id].file_name,
            page_range=evidence[citation.chunk_id].page_range,
        )
        for citation in citations
    ]


def answer_followup(
    session: Session,
    *,
    user_id: str,
    subject_id: str,
    question: str,
    thread_id: str,
    prior_chunk_ids: list[str],
    embedding_client: EmbeddingClient,
    completion_client: CompletionClient,
    match_count: int = 3,
    max_extracts: int = MAX_SUPPORTING_EXTRACTS,
) -> FollowupResult:
    """Answer a follow-up question from the subject's notes only.

    Raises ``ValueError`` for a blank question, ``SubjectNotFoundError`` when
    the subject is not the user's, ``StorageError`` when prior chunks cannot
    be loaded and ``LLMClientError`` when the completion service fails.
    Everything the model gets wrong comes back as the not-found result.
    """
    normalized_question = question.strip()
    if not normalized_question:
        raise ValueError("question must not be empty")

    subject = get_subject(session, user_id=user_id, subject_id=subject_id)

    evidence = assemble_evidence_set(
        session,
        user_id=user_id,
        subject_id=subject.subject_id,
        question=normalized_question,
        prior_chunk_ids=prior_chunk_ids,
        embedding_client=embedding_client,
        match_count=match_count,
    )
    if not evidence:
        logger.info("No evidence for thread_id=%s; answering not found", thread_id)
        return FollowupResult.not_found_for(thread_id)

    candidate = request_grounded_answer(
        completion_client,
        subject_name=subject.name,
        question=normalized_question,
        evidence=evidence,
    )
    sanitized = sanitize_answer(candidate, evidence.keys())
    if sanitized.not_found:
        if not candidate.not_found:
            logger.info(
                "Forced not found for thread_id=%s: no valid citation among %d claimed",
                thread_id,
                len(candidate.citations),
            )
        return FollowupResult.not_found_for(thread_id)

    supporting_extracts = select_supporting_extracts(
        normalized_question,
        sanitized.used_chunk_ids,
        evidence,
        limit=max_extracts,
    )
    logger.info(
        "Answered thread_id=%s evidence=%d used=%d extracts=%d",
        thread_id,
        len(evidence),
        len(sanitized.used_chunk_ids),
        len(supporting_extracts),
    )
    return FollowupResult(
        thread_id=thread_id,
        not_found=False,
        answer=sanitized.answer,
        citations=_attribute_citations(sanitized.citations, evidence),
        used_chunk_ids=sanitized.used_chunk_ids,
        supporting_extracts=supporting_extracts,
    )
