"""Data access layer."""
from shared.repositories.roster_repository import RosterRepository
from shared.repositories.feedback_repository import FeedbackRepository
from shared.repositories.respondent_repository import RespondentRepository

__all__ = ["RosterRepository", "FeedbackRepository", "RespondentRepository"]
