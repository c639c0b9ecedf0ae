from __future__ import annotations

from dataclasses import dataclass, field

from notes_api.services.notes.types import Chunk

NOT_FOUND_ANSWER = "Not found in your notes for this subject."

# chunk id -> chunk, in the order the chunks were gathered for the turn
EvidenceSet = dict[str, Chunk]


@dataclass(frozen=True)
class Citation:
    chunk_id: str
    file_name: str
    page_range: str


@dataclass(frozen=True)
class SupportingExtract:
    text: str
    chunk_id: str
    file_name: str
    page_range: str


@dataclass(frozen=True)
class CandidateAnswer:
    not_found: bool
    answer: str
    citations: list[Citation] = field(default_factory=list)
    used_chunk_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FollowupResult:
    thread_id: str
    not_found: bool
    answer: str
    citations: list[Citation]
    used_chunk_ids: list[str]
    supporting_extracts: list[SupportingExtract]

    @classmethod
    def not_found_for(cls, thread_id: str) -> FollowupResult:
        return cls(
            thread_id=thread_id,
            not_found=True,
            answer=NOT_FOUND_ANSWER,
            citations=[],
            used_chunk_ids=[],
            supporting_extracts=[],
        )
