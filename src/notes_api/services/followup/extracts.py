from __future__ import annotations

import re

from notes_api.services.followup.types import EvidenceSet, SupportingExtract

STOPWORDS = frozenset(
    {
        "the",
        "is",
        "and",
        "or",
        "a",
        "an",
        "of",
        "to",
        "in",
        "on",
        "for",
        "with",
        "at",
        "by",
        "from",
        "as",
        "that",
        "this",
        "it",
        "are",
        "was",
        "be",
        "can",
        "will",
        "shall",
    }
)
MAX_SUPPORTING_EXTRACTS = 8

_SENT_SPLIT = re.compile(r"(?<=[.!?])\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def significant_tokens(text: str) -> list[str]:
    normalized = _NON_ALNUM.sub(" ", text.lower())
    return [token for token in normalized.split() if token not in STOPWORDS]


def split_sentences(text: str) -> list[str]:
    return [sentence.strip() for sentence in _SENT_SPLIT.split(text) if sentence.strip()]


def score_sentence(sentence: str, question_tokens: set[str]) -> int:
    return sum(1 for token in significant_tokens(sentence) if token in question_tokens)


def select_supporting_extracts(
    question: str,
    used_chunk_ids: list[str],
    evidence: EvidenceSet,
    *,
    limit: int = MAX_SUPPORTING_EXTRACTS,
) -> list[SupportingExtract]:
    """Rank sentences of the used chunks by keyword overlap with ``question``.

    Sentences without any overlap are left out, so an empty list is a valid
    result for a grounded answer. Equal scores keep chunk order, then
    sentence order.
    """
    question_tokens = set(significant_tokens(question))
    if not question_tokens:
        return []

    scored: list[tuple[int, SupportingExtract]] = []
    for chunk_id in used_chunk_ids:
        chunk = evidence.get(chunk_id)
        if chunk is None:
            continue
        for sentence in split_sentences(chunk.content):
            score = score_sentence(sentence, question_tokens)
            if score <= 0:
                continue
            scored.append(
                (
                    score,
                    SupportingExtract(
                        text=sentence,
                        chunk_id=chunk.chunk_id,
                        file_name=chunk.file_name,
                        page_range=chunk.page_range,
                    ),
                )
            )

    # list.sort is stable, so discovery order breaks ties
    scored.sort(key=lambda item: item[0], reverse=True)
    return [extract for _, extract in scored[: max(0, limit)]]
