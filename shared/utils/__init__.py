"""Shared utilities - constants and the exception hierarchy."""
from shared.utils.exceptions import (
    FeedbackResultsException,
    EntityNotFoundException,
    SessionNotFoundException,
    QuestionNotFoundException,
    ParticipantNotFoundException,
    ExceedingRangeException,
    DatabaseException,
    InconsistentQueryError,
)

__all__ = [
    "FeedbackResultsException",
    "EntityNotFoundException",
    "SessionNotFoundException",
    "QuestionNotFoundException",
    "ParticipantNotFoundException",
    "ExceedingRangeException",
    "DatabaseException",
    "InconsistentQueryError",
]
