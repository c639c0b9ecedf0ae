from notes_api.services.notes.ingest import ingest_notes
from notes_api.services.notes.similarity import SearchError, search_similar_chunks
from notes_api.services.notes.store import StorageError, SubjectNotFoundError, fetch_chunks
from notes_api.services.notes.types import Chunk, ChunkMatch, IngestionSummary

__all__ = [
    "Chunk",
    "ChunkMatch",
    "IngestionSummary",
    "SearchError",
    "StorageError",
    "SubjectNotFoundError",
    "fetch_chunks",
    "ingest_notes",
    "search_similar_chunks",
]
