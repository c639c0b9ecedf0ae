from __future__ import annotations

import argparse
from pathlib import Path
import sys

from sqlalchemy.orm import Session

from notes_api.config import get_settings
from notes_api.db import Base, get_engine
from notes_api.services.notes.embedding_client import HttpEmbeddingClient
from notes_api.services.notes.ingest import ingest_notes


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="notes-ingest",
        description="Load note files into a new subject for a user",
    )
    parser.add_argument("--user-id", required=True, help="Owner of the new subject")
    parser.add_argument("--subject-name", required=True, help="Display name of the subject")
    parser.add_argument(
        "--source-dir",
        default=settings.notes_source_dir,
        help="Source directory containing .txt/.md notes (pages separated by form feeds)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.notes_chunk_size,
        help="Chunk size in characters",
    )
    parser.add_argument(
        "--chunk-overlap",
        type=int,
        default=settings.notes_chunk_overlap,
        help="Chunk overlap in characters",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    embedding_client = HttpEmbeddingClient(
        base_url=settings.embedding_base_url,
        model=settings.embedding_model,
        api_key=settings.embedding_api_key,
        timeout_seconds=settings.embedding_timeout_seconds,
    )

    try:
        engine = get_engine()
        Base.metadata.create_all(bind=engine)
        with Session(engine) as session:
            summary = ingest_notes(
                session,
                user_id=args.user_id,
                subject_name=args.subject_name,
                source_dir=Path(args.source_dir),
                chunk_size=args.chunk_size,
                chunk_overlap=args.chunk_overlap,
                embedding_client=embedding_client,
            )
            session.commit()
    except Exception as exc:
        print(f"[notes-ingest] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    print(
        "[notes-ingest] completed "
        f"subject_id={summary.subject_id} "
        f"documents={summary.document_count} "
        f"chunks={summary.chunk_count}",
        flush=True,
    )


if __name__ == "__main__":
    main()
