from __future__ import annotations

from collections.abc import Collection

from notes_api.services.followup.types import NOT_FOUND_ANSWER, CandidateAnswer, Citation


def sanitize_answer(candidate: CandidateAnswer, allowed_ids: Collection[str]) -> CandidateAnswer:
    """Restrict a model answer to the chunks it was actually given.

    Citations and used ids outside ``allowed_ids`` are dropped. An answer left
    without a citation or a used chunk becomes the not-found answer, and a
    not-found answer never carries citations, used ids or model text.
    Applying this twice gives the same result as applying it once.
    """
    allowed = set(allowed_ids)

    citations: list[Citation] = []
    cited_ids: set[str] = set()
    # one citation per chunk; a repeated chunk keeps its first citation
    for citation in candidate.citations:
        if citation.chunk_id not in allowed or citation.chunk_id in cited_ids:
            continue
        citations.append(citation)
        cited_ids.add(citation.chunk_id)

    used_chunk_ids = candidate.used_chunk_ids or [citation.chunk_id for citation in citations]
    used_chunk_ids = list(
        dict.fromkeys(chunk_id for chunk_id in used_chunk_ids if chunk_id in allowed)
    )

    not_found = candidate.not_found or not citations or not used_chunk_ids
    if not_found:
        return CandidateAnswer(
            not_found=True,
            answer=NOT_FOUND_ANSWER,
            citations=[],
            used_chunk_ids=[],
        )

    return CandidateAnswer(
        not_found=False,
        answer=candidate.answer,
        citations=citations,
        used_chunk_ids=used_chunk_ids,
    )
