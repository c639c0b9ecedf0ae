from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx


class LLMClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ChatResult:
    content: str
    model: str
    used_fallback: bool


class CompletionClient(Protocol):
    def complete_json(self, *, system_prompt: str, user_prompt: str) -> ChatResult: ...


class ChatCompletionClient:
    """Client for OpenAI-compatible ``/chat/completions`` endpoints (Groq, Ollama, ...)."""

    def __init__(
        self,
        *,
        base_url: str,
        default_model: str,
        fallback_model: str = "",
        api_key: str = "",
        temperature: float = 0.3,
        json_mode: bool = True,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._default_model = default_model
        self._fallback_model = fallback_model
        self._api_key = api_key
        self._temperature = temperature
        self._json_mode = json_mode
        self._timeout_seconds = timeout_seconds

    def complete_json(self, *, system_prompt: str, user_prompt: str) -> ChatResult:
        for model, used_fallback in self._model_candidates():
            try:
                content = self._chat_completion(
                    model=model,
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                )
            except (httpx.HTTPError, ValueError) as exc:
                if used_fallback or not self._has_fallback():
                    raise LLMClientError(str(exc)) from exc
                continue

            return ChatResult(content=content, model=model, used_fallback=used_fallback)

        raise LLMClientError("No model candidates configured")

    def _has_fallback(self) -> bool:
        return bool(self._fallback_model) and self._fallback_model != self._default_model

    def _model_candidates(self) -> list[tuple[str, bool]]:
        candidates: list[tuple[str, bool]] = [(self._default_model, False)]
        if self._has_fallback():
            candidates.append((self._fallback_model, True))
        return candidates

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}"}

    def _chat_completion(self, *, model: str, system_prompt: str, user_prompt: str) -> str:
        body: dict[str, object] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self._temperature,
        }
        if self._json_mode:
            body["response_format"] = {"type": "json_object"}

        response = httpx.post(
            f"{self._base_url}/chat/completions",
            json=body,
            headers=self._headers(),
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()

        payload = response.json()
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ValueError("Invalid chat completion payload: missing choices")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise ValueError("Invalid chat completion payload: missing assistant message")

        # An empty reply is the model's output, not a transport failure.
        content = message.get("content")
        if not isinstance(content, str):
            return ""
        return content.strip()


def strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()
