from __future__ import annotations

from pathlib import Path

from notes_api.services.notes.types import SourceDocument

SUPPORTED_EXTENSIONS = {".txt", ".md"}
PAGE_BREAK = "\f"


def load_documents(
    source_dir: Path,
    supported_extensions: set[str] | None = None,
) -> list[SourceDocument]:
    if not source_dir.exists():
        raise FileNotFoundError(f"Source directory not found: {source_dir}")
    if not source_dir.is_dir():
        raise NotADirectoryError(f"Source path is not a directory: {source_dir}")

    extensions = supported_extensions or SUPPORTED_EXTENSIONS
    files = sorted(
        path
        for path in source_dir.rglob("*")
        if path.is_file() and path.suffix.lower() in extensions
    )

    documents: list[SourceDocument] = []
    for path in files:
        text = path.read_text(encoding="utf-8")
        # Page numbers stay stable even when a page is blank.
        pages = [page.strip() for page in text.split(PAGE_BREAK)]
        if not any(pages):
            continue

        documents.append(
            SourceDocument(
                file_name=path.relative_to(source_dir).as_posix(),
                pages=pages,
            )
        )

    if not documents:
        raise ValueError(
            f"No non-empty supported documents found in {source_dir} "
            f"(supported: {sorted(extensions)})"
        )

    return documents
