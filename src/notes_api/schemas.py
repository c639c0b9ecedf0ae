from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from notes_api.services.followup.types import Citation, FollowupResult, SupportingExtract


class CitationPayload(BaseModel):
    chunk_id: str
    file_name: str
    page_range: str

    @classmethod
    def from_citation(cls, citation: Citation) -> CitationPayload:
        return cls(
            chunk_id=citation.chunk_id,
            file_name=citation.file_name,
            page_range=citation.page_range,
        )


class ExtractCitationPayload(BaseModel):
    file_name: str
    page_range: str


class SupportingExtractPayload(BaseModel):
    text: str
    chunk_id: str
    citation: ExtractCitationPayload

    @classmethod
    def from_extract(cls, extract: SupportingExtract) -> SupportingExtractPayload:
        return cls(
            text=extract.text,
            chunk_id=extract.chunk_id,
            citation=ExtractCitationPayload(
                file_name=extract.file_name,
                page_range=extract.page_range,
            ),
        )


class EvidenceMessage(BaseModel):
    """Assistant turn produced by evidence mode (verbatim snippets, no model call)."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["assistant"] = "assistant"
    mode: Literal["evidence"]
    text: str = ""
    confidence: Literal["High", "Medium", "Low"] | None = None
    citations: list[CitationPayload] = Field(default_factory=list)
    chunk_ids: list[str] = Field(default_factory=list)

    def referenced_chunk_ids(self) -> list[str]:
        return list(self.chunk_ids)


class ExplainMessage(BaseModel):
    """Assistant turn produced by a grounded follow-up answer."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["assistant"] = "assistant"
    mode: Literal["explain"]
    text: str
    citations: list[CitationPayload] = Field(default_factory=list)
    used_chunk_ids: list[str] = Field(default_factory=list)
    supporting_extracts: list[SupportingExtractPayload] = Field(default_factory=list)

    def referenced_chunk_ids(self) -> list[str]:
        return list(self.used_chunk_ids)

    @classmethod
    def from_result(cls, result: FollowupResult) -> ExplainMessage:
        return cls(
            mode="explain",
            text=result.answer,
            citations=[CitationPayload.from_citation(c) for c in result.citations],
            used_chunk_ids=list(result.used_chunk_ids),
            supporting_extracts=[
                SupportingExtractPayload.from_extract(e) for e in result.supporting_extracts
            ],
        )


ThreadMessage = Annotated[Union[EvidenceMessage, ExplainMessage], Field(discriminator="mode")]


class LastExtract(BaseModel):
    text: str
    chunk_id: str
    citation: Any | None = None


class FollowupContext(BaseModel):
    model_config = ConfigDict(extra="forbid")

    last_chunk_ids: list[str] = Field(default_factory=list)
    last_extracts: list[LastExtract] = Field(default_factory=list)
    last_message: Optional[ThreadMessage] = None

    def prior_chunk_ids(self) -> list[str]:
        chunk_ids = list(self.last_chunk_ids)
        if self.last_message is not None:
            chunk_ids.extend(self.last_message.referenced_chunk_ids())
        return list(dict.fromkeys(chunk_ids))


class FollowupRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject_id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    thread_id: str = Field(min_length=1)
    context: FollowupContext = Field(default_factory=FollowupContext)


class FollowupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thread_id: str
    not_found: bool = Field(alias="notFound")
    answer: str
    citations: list[CitationPayload]
    used_chunk_ids: list[str]
    supporting_extracts: list[SupportingExtractPayload]

    @classmethod
    def from_result(cls, result: FollowupResult) -> FollowupResponse:
        return cls(
            thread_id=result.thread_id,
            not_found=result.not_found,
            answer=result.answer,
            citations=[CitationPayload.from_citation(c) for c in result.citations],
            used_chunk_ids=list(result.used_chunk_ids),
            supporting_extracts=[
                SupportingExtractPayload.from_extract(e) for e in result.supporting_extracts
            ],
        )
