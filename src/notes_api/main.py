import logging
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException
from sqlalchemy.orm import Session

from notes_api.config import get_settings
from notes_api.db import get_engine, get_session
from notes_api.llm import ChatCompletionClient, CompletionClient, LLMClientError
from notes_api.logging_config import setup_logging
from notes_api.schemas import FollowupRequest, FollowupResponse
from notes_api.services.followup.pipeline import answer_followup
from notes_api.services.notes.embedding_client import EmbeddingClient, HttpEmbeddingClient
from notes_api.services.notes.store import StorageError, SubjectNotFoundError

logger = logging.getLogger(__name__)

app = FastAPI(title="Notes Follow-up API", version="0.1.0")


@app.on_event("startup")
def startup() -> None:
    setup_logging(get_settings().log_level)
    get_engine()


def get_llm_client() -> CompletionClient:
    settings = get_settings()
    return ChatCompletionClient(
        base_url=settings.llm_base_url,
        default_model=settings.llm_model,
        fallback_model=settings.llm_fallback_model,
        api_key=settings.llm_api_key,
        temperature=settings.llm_temperature,
        json_mode=settings.llm_json_mode,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def get_embedding_client() -> EmbeddingClient:
    settings = get_settings()
    return HttpEmbeddingClient(
        base_url=settings.embedding_base_url,
        model=settings.embedding_model,
        api_key=settings.embedding_api_key,
        timeout_seconds=settings.embedding_timeout_seconds,
    )


def get_current_user_id(x_user_id: Annotated[str, Header(min_length=1)]) -> str:
    # Authentication happens upstream; the gateway forwards the verified user id.
    return x_user_id


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/qa/followup")
def qa_followup(
    request: FollowupRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[Session, Depends(get_session)],
    llm_client: Annotated[CompletionClient, Depends(get_llm_client)],
    embedding_client: Annotated[EmbeddingClient, Depends(get_embedding_client)],
) -> dict[str, Any]:
    question = request.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="question must not be empty")

    settings = get_settings()

    try:
        result = answer_followup(
            session,
            user_id=user_id,
            subject_id=request.subject_id,
            question=question,
            thread_id=request.thread_id,
            prior_chunk_ids=request.context.prior_chunk_ids(),
            embedding_client=embedding_client,
            completion_client=llm_client,
            match_count=settings.followup_match_count,
            max_extracts=settings.followup_max_extracts,
        )
    except SubjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Subject not found for user") from exc
    except StorageError as exc:
        logger.exception("Follow-up failed while loading notes for thread_id=%s", request.thread_id)
        raise HTTPException(status_code=500, detail="Failed to load notes") from exc
    except LLMClientError as exc:
        logger.error("Completion service failed for thread_id=%s: %s", request.thread_id, exc)
        raise HTTPException(status_code=502, detail="Completion service unavailable") from exc

    return FollowupResponse.from_result(result).model_dump(by_alias=True)


def run() -> None:
    import uvicorn

    uvicorn.run("notes_api.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
