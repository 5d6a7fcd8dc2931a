"""Results feature models."""
from results.models.roster import CourseRoster
from results.models.bundle import ResponseStatus, ResultsBundle
from results.models.details import SessionDetails, SessionStats

__all__ = ["CourseRoster", "ResponseStatus", "ResultsBundle", "SessionDetails", "SessionStats"]
