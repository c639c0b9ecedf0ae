from __future__ import annotations

from notes_api.services.notes.types import PageChunk, SourceDocument


def _chunk_text(text: str, *, chunk_size: int, chunk_overlap: int) -> list[str]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap must be >= 0")
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")

    chunks: list[str] = []
    cursor = 0
    text_length = len(text)

    while cursor < text_length:
        end = min(text_length, cursor + chunk_size)
        chunk = text[cursor:end].strip()
        if chunk:
            chunks.append(chunk)

        if end >= text_length:
            break
        cursor = end - chunk_overlap

    return chunks


def chunk_documents(
    documents: list[SourceDocument],
    *,
    chunk_size: int,
    chunk_overlap: int,
) -> list[PageChunk]:
    """Split every page separately so each chunk cites a single page."""
    page_chunks: list[PageChunk] = []

    for document in documents:
        chunk_index = 0
        for page_number, page_text in enumerate(document.pages, start=1):
            for chunk_text in _chunk_text(
                page_text,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
            ):
                page_chunks.append(
                    PageChunk(
                        file_name=document.file_name,
                        page_range=str(page_number),
                        chunk_index=chunk_index,
                        content=chunk_text,
                    )
                )
                chunk_index += 1

    return page_chunks
