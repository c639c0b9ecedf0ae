from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from notes_api.llm import CompletionClient, strip_code_fences
from notes_api.services.followup.types import (
    NOT_FOUND_ANSWER,
    CandidateAnswer,
    Citation,
    EvidenceSet,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a helpful explanation assistant for study notes.
You ONLY use the provided chunks of text to answer.
Never use outside knowledge, even if you are confident it is correct.
If the answer is not clearly contained in the chunks, you MUST treat it as not found.
You must respond with STRICT JSON ONLY (no markdown, no extra text).
""".strip()

USER_PROMPT_TEMPLATE = """
You are given note chunks for the subject "{subject_name}".

Chunks:
{evidence}

Follow-up question:
{question}

Instructions:
- Answer ONLY using the information from the given chunks.
- If the answer is not present in the chunks, set "notFound": true.
- When "notFound" is true, "answer" MUST be exactly: "{not_found_answer}"
- When "notFound" is false, provide a concise natural-language explanation in "answer".
- Always include "citations" referencing the chunks you used:
  - Each citation must be: {{ "chunk_id": string, "file_name": string, "page_range": string }}.
- Also include an array "used_chunk_ids" listing the IDs of all chunks you relied on.

Return STRICT JSON ONLY with shape:
{{
  "notFound": boolean,
  "answer": string,
  "citations": [{{ "chunk_id": "...", "file_name": "...", "page_range": "..." }}],
  "used_chunk_ids": string[]
}}
""".strip()


class ModelOutputError(ValueError):
    pass


class _RawCitation(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    chunk_id: str
    file_name: str = ""
    page_range: str = ""


class _RawGroundedAnswer(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    not_found: bool = Field(default=False, alias="notFound")
    answer: str = ""
    citations: list[_RawCitation] = Field(default_factory=list)
    used_chunk_ids: list[str] = Field(default_factory=list)

    @field_validator("answer", mode="before")
    @classmethod
    def _null_answer(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("citations", "used_chunk_ids", mode="before")
    @classmethod
    def _null_list(cls, value: object) -> object:
        return [] if value is None else value


def render_evidence(evidence: EvidenceSet) -> str:
    return "\n\n".join(
        f"CHUNK_ID: {chunk.chunk_id}\n"
        f"FILE: {chunk.file_name}\n"
        f"PAGE_RANGE: {chunk.page_range}\n"
        f"TEXT:\n{chunk.content}\n---"
        for chunk in evidence.values()
    )


def build_prompts(*, subject_name: str, question: str, evidence: EvidenceSet) -> tuple[str, str]:
    user_prompt = USER_PROMPT_TEMPLATE.format(
        subject_name=subject_name,
        evidence=render_evidence(evidence),
        question=question,
        not_found_answer=NOT_FOUND_ANSWER,
    )
    return SYSTEM_PROMPT, user_prompt


def parse_candidate_answer(raw: str) -> CandidateAnswer:
    cleaned = strip_code_fences(raw)
    try:
        parsed = _RawGroundedAnswer.model_validate_json(cleaned)
    except ValidationError as exc:
        raise ModelOutputError(f"Unusable grounded-answer payload: {exc}") from exc

    return CandidateAnswer(
        not_found=parsed.not_found,
        answer=parsed.answer,
        citations=[
            Citation(
                chunk_id=citation.chunk_id,
                file_name=citation.file_name,
                page_range=citation.page_range,
            )
            for citation in parsed.citations
        ],
        used_chunk_ids=list(parsed.used_chunk_ids),
    )


def request_grounded_answer(
    client: CompletionClient,
    *,
    subject_name: str,
    question: str,
    evidence: EvidenceSet,
) -> CandidateAnswer:
    """Ask the completion service for an answer grounded in ``evidence``.

    Unusable model output degrades to a not-found candidate. ``LLMClientError``
    from the client is not caught.
    """
    system_prompt, user_prompt = build_prompts(
        subject_name=subject_name,
        question=question,
        evidence=evidence,
    )
    result = client.complete_json(system_prompt=system_prompt, user_prompt=user_prompt)

    try:
        return parse_candidate_answer(result.content)
    except ModelOutputError:
        logger.warning(
            "Failed to parse grounded answer from model=%s (%d chars)",
            result.model,
            len(result.content),
            exc_info=True,
        )
        return CandidateAnswer(not_found=True, answer="", citations=[], used_chunk_ids=[])
