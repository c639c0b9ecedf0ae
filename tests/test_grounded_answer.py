import json

import pytest

from notes_api.llm import LLMClientError
from notes_api.services.followup.grounded_answer import (
    SYSTEM_PROMPT,
    ModelOutputError,
    build_prompts,
    parse_candidate_answer,
    render_evidence,
    request_grounded_answer,
)
from notes_api.services.followup.types import NOT_FOUND_ANSWER, CandidateAnswer, Citation
from notes_api.services.notes.types import Chunk
from tests.fakes import FailingCompletionClient, FakeCompletionClient

EVIDENCE = {
    "c1": Chunk(chunk_id="c1", file_name="plants.md", page_range="3", content="Plants use light."),
    "c2": Chunk(chunk_id="c2", file_name="cells.md", page_range="7", content="Cells divide."),
}


def test_render_evidence_lists_chunks_in_order() -> None:
    assert render_evidence(EVIDENCE) == (
        "CHUNK_ID: c1\nFILE: plants.md\nPAGE_RANGE: 3\nTEXT:\nPlants use light.\n---"
        "\n\n"
        "CHUNK_ID: c2\nFILE: cells.md\nPAGE_RANGE: 7\nTEXT:\nCells divide.\n---"
    )


def test_build_prompts_embed_subject_question_and_contract() -> None:
    system_prompt, user_prompt = build_prompts(
        subject_name="Biology",
        question="How do plants get energy?",
        evidence=EVIDENCE,
    )

    assert system_prompt == SYSTEM_PROMPT
    assert "ONLY use the provided chunks" in system_prompt
    assert 'note chunks for the subject "Biology"' in user_prompt
    assert "CHUNK_ID: c2" in user_prompt
    assert "Follow-up question:\nHow do plants get energy?" in user_prompt
    assert f'"answer" MUST be exactly: "{NOT_FOUND_ANSWER}"' in user_prompt
    assert '"used_chunk_ids": string[]' in user_prompt


def test_parse_candidate_answer_reads_full_payload() -> None:
    raw = json.dumps(
        {
            "notFound": False,
            "answer": "They use light.",
            "citations": [{"chunk_id": "c1", "file_name": "plants.md", "page_range": 3}],
            "used_chunk_ids": ["c1"],
            "confidence": "high",
        }
    )

    assert parse_candidate_answer(raw) == CandidateAnswer(
        not_found=False,
        answer="They use light.",
        citations=[Citation(chunk_id="c1", file_name="plants.md", page_range="3")],
        used_chunk_ids=["c1"],
    )


def test_parse_candidate_answer_strips_code_fences_and_fills_defaults() -> None:
    raw = '```json\n{"answer": "Partial", "citations": null}\n```'

    assert parse_candidate_answer(raw) == CandidateAnswer(
        not_found=False,
        answer="Partial",
        citations=[],
        used_chunk_ids=[],
    )


@pytest.mark.parametrize(
    "raw",
    [
        '{"notFound": false, "answer": "truncated',
        "",
        "Sure! Here is the answer: plants use light.",
        '["c1"]',
        '{"citations": "c1"}',
        '{"citations": [{"file_name": "plants.md"}]}',
        '{"used_chunk_ids": [["c1"]]}',
        '{"answer": {"text": "nested"}}',
    ],
)
def test_parse_candidate_answer_rejects_unusable_output(raw: str) -> None:
    with pytest.raises(ModelOutputError):
        parse_candidate_answer(raw)


def test_request_grounded_answer_sends_prompts_and_parses_reply() -> None:
    client = FakeCompletionClient(
        {
            "notFound": False,
            "answer": "They use light.",
            "citations": [{"chunk_id": "c1", "file_name": "plants.md", "page_range": "3"}],
            "used_chunk_ids": ["c1"],
        }
    )

    candidate = request_grounded_answer(
        client,
        subject_name="Biology",
        question="How do plants get energy?",
        evidence=EVIDENCE,
    )

    assert candidate.answer == "They use light."
    assert len(client.calls) == 1
    system_prompt, user_prompt = client.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert "CHUNK_ID: c1" in user_prompt


def test_request_grounded_answer_turns_malformed_output_into_not_found() -> None:
    client = FakeCompletionClient('{"notFound": false, "answer": "Plants use li')

    candidate = request_grounded_answer(
        client,
        subject_name="Biology",
        question="How do plants get energy?",
        evidence=EVIDENCE,
    )

    assert candidate == CandidateAnswer(not_found=True, answer="", citations=[], used_chunk_ids=[])


def test_request_grounded_answer_propagates_service_failures() -> None:
    with pytest.raises(LLMClientError):
        request_grounded_answer(
            FailingCompletionClient(),
            subject_name="Biology",
            question="How do plants get energy?",
            evidence=EVIDENCE,
        )
