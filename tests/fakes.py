from __future__ import annotations

import json

from notes_api.llm import ChatResult, LLMClientError
from notes_api.services.notes.embedding_client import EmbeddingClientError

DEFAULT_VOCABULARY = (
    "photosynthesis",
    "light",
    "chlorophyll",
    "mitochondria",
    "energy",
    "enzyme",
)


class KeywordEmbeddingClient:
    def __init__(self, vocabulary: tuple[str, ...] = DEFAULT_VOCABULARY) -> None:
        self._vocabulary = vocabulary
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        vectors: list[list[float]] = []
        for text in texts:
            normalized = text.lower()
            vectors.append([0.1] + [float(normalized.count(word)) for word in self._vocabulary])
        return vectors


class FailingEmbeddingClient:
    def __init__(self) -> None:
        self.calls = 0

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        raise EmbeddingClientError("simulated embedding outage")


class FakeCompletionClient:
    def __init__(self, reply: str | dict[str, object]) -> None:
        self._content = reply if isinstance(reply, str) else json.dumps(reply)
        self.calls: list[tuple[str, str]] = []

    def complete_json(self, *, system_prompt: str, user_prompt: str) -> ChatResult:
        self.calls.append((system_prompt, user_prompt))
        return ChatResult(content=self._content, model="fake-model", used_fallback=False)


class FailingCompletionClient:
    def __init__(self) -> None:
        self.calls = 0

    def complete_json(self, *, system_prompt: str, user_prompt: str) -> ChatResult:
        self.calls += 1
        raise LLMClientError("simulated timeout")
