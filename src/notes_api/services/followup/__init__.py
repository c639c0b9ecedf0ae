from notes_api.services.followup.pipeline import answer_followup
from notes_api.services.followup.sanitizer import sanitize_answer
from notes_api.services.followup.types import (
    NOT_FOUND_ANSWER,
    CandidateAnswer,
    Citation,
    FollowupResult,
    SupportingExtract,
)

__all__ = [
    "NOT_FOUND_ANSWER",
    "CandidateAnswer",
    "Citation",
    "FollowupResult",
    "SupportingExtract",
    "answer_followup",
    "sanitize_answer",
]
