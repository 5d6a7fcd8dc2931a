"""Loading helpers shared by the results services."""
import logging

from results.models.roster import CourseRoster
from shared.models.domain import FeedbackSession
from shared.repositories import FeedbackRepository, RosterRepository
from shared.utils.exceptions import SessionNotFoundException

logger = logging.getLogger(__name__)


def load_session(feedback_repo: FeedbackRepository, course_id: str, session_name: str) -> FeedbackSession:
    """Load a session or raise SessionNotFoundException."""
    session = feedback_repo.get_session(course_id, session_name)
    if session is None:
        logger.warning(f"Feedback session not found: {course_id}/{session_name}")
        raise SessionNotFoundException(course_id, session_name)
    return session


def load_course_roster(roster_repo: RosterRepository, course_id: str) -> CourseRoster:
    return CourseRoster.from_lists(
        course_id,
        roster_repo.get_students_for_course(course_id),
        roster_repo.get_instructors_for_course(course_id),
    )
