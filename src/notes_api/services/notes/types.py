from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    file_name: str
    page_range: str
    content: str


@dataclass(frozen=True)
class ChunkMatch:
    chunk: Chunk
    score: float


@dataclass(frozen=True)
class SourceDocument:
    file_name: str
    pages: list[str]


@dataclass(frozen=True)
class PageChunk:
    file_name: str
    page_range: str
    chunk_index: int
    content: str


@dataclass(frozen=True)
class IngestionSummary:
    subject_id: str
    document_count: int
    chunk_count: int
