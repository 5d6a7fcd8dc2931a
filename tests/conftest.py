"""Pytest configuration and shared fixtures."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from shared.models.entities import Base
# Import all models to ensure they are registered with Base.metadata
from shared.models.entities import *
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    Instructor,
    InstructorPrivileges,
    ParticipantType,
    QuestionType,
    RespondentKind,
    ResponseComment,
    SessionType,
    Student,
)
from shared.repositories import FeedbackRepository, RespondentRepository, RosterRepository
from shared.utils.constants import PRIVILEGE_VIEW_SESSION_IN_SECTIONS

COURSE_ID = "CS101"
SESSION_NAME = "Mid-term feedback"
CREATOR = "inst@example.com"
HELPER = "helper@example.com"
BASE_TIME = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a test database session with in-memory SQLite.

    This fixture creates a fresh database for each test function,
    ensuring test isolation.
    """
    # Create in-memory SQLite database
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    Base.metadata.create_all(engine)

    # Create session
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(engine)


class CourseSeeder:
    """Writes course fixtures through the repositories."""

    def __init__(self, db):
        self.db = db
        self.roster = RosterRepository(db)
        self.feedback = FeedbackRepository(db)
        self.respondents = RespondentRepository(db)
        self._clock = BASE_TIME

    def student(self, email, name, team, section="None", course_id=COURSE_ID):
        return self.roster.create_student(
            Student(email=email, course_id=course_id, name=name, team=team, section=section)
        )

    def instructor(self, email, name, privileges=None, course_id=COURSE_ID):
        return self.roster.create_instructor(
            Instructor(
                email=email,
                course_id=course_id,
                name=name,
                privileges=privileges or InstructorPrivileges(),
            )
        )

    def session(self, session_name=SESSION_NAME, session_type=SessionType.STANDARD,
                creator_email=CREATOR, course_id=COURSE_ID):
        return self.feedback.create_session(
            FeedbackSession(
                course_id=course_id,
                session_name=session_name,
                session_type=session_type,
                creator_email=creator_email,
                visible_time=BASE_TIME - timedelta(days=1),
                publish_time=BASE_TIME + timedelta(days=7),
            )
        )

    def question(self, question_id, number, giver_type, recipient_type, show_responses_to=(),
                 show_giver_name_to=(), show_recipient_name_to=(), question_type=QuestionType.TEXT,
                 options=(), show_missing_responses=True, session_name=SESSION_NAME,
                 text=None, course_id=COURSE_ID):
        return self.feedback.create_question(
            FeedbackQuestion(
                id=question_id,
                course_id=course_id,
                session_name=session_name,
                question_number=number,
                question_text=text or f"Question text {number}",
                question_type=question_type,
                options=list(options),
                giver_type=giver_type,
                recipient_type=recipient_type,
                show_responses_to=set(show_responses_to),
                show_giver_name_to=set(show_giver_name_to),
                show_recipient_name_to=set(show_recipient_name_to),
                show_missing_responses=show_missing_responses,
            )
        )

    def response(self, question, giver, recipient, answer="answer", giver_section="None",
                 recipient_section="None", is_anonymous=False, created_at=None):
        self._clock += timedelta(minutes=1)
        return self.feedback.create_response(
            FeedbackResponse(
                question_id=question.id,
                course_id=question.course_id,
                session_name=question.session_name,
                giver_email=giver,
                giver_section=giver_section,
                recipient_email=recipient,
                recipient_section=recipient_section,
                answer=answer,
                is_anonymous=is_anonymous,
                created_at=created_at or self._clock,
            )
        )

    def comment(self, comment_id, response, author, text="comment", created_at=None,
                show_comment_to=None, show_giver_name_to=None):
        self._clock += timedelta(minutes=1)
        return self.feedback.create_comment(
            ResponseComment(
                id=comment_id,
                course_id=response.course_id,
                session_name=response.session_name,
                question_id=response.question_id,
                response_id=response.id,
                author_email=author,
                comment_text=text,
                created_at=created_at or self._clock,
                giver_section=response.giver_section,
                recipient_section=response.recipient_section,
                show_comment_to=None if show_comment_to is None else set(show_comment_to),
                show_giver_name_to=None if show_giver_name_to is None else set(show_giver_name_to),
            )
        )

    def responded(self, email, kind=RespondentKind.STUDENT, session_name=SESSION_NAME):
        self.respondents.add_respondent(COURSE_ID, session_name, email, kind)

    def standard_course(self):
        """
        Two sections with one team each, a course co-owner who creates the
        session and a helper who may only view Section A.
        """
        self.student("alice@example.com", "Alice Tan", "Team 1", "Section A")
        self.student("bob@example.com", "Bob Lee", "Team 1", "Section A")
        self.student("carol@example.com", "Carol Ng", "Team 2", "Section B")
        self.student("dave@example.com", "Dave Ong", "Team 2", "Section B")
        self.instructor(CREATOR, "Ivy Instructor")
        self.instructor(
            HELPER,
            "Hank Helper",
            InstructorPrivileges(
                course_level=set(),
                section_level={"Section A": {PRIVILEGE_VIEW_SESSION_IN_SECTIONS}},
            ),
        )
        self.session()


@pytest.fixture
def seeder(db_session):
    """Empty course seeder bound to the test database."""
    return CourseSeeder(db_session)


@pytest.fixture
def course(seeder):
    """Seeder with the standard two-section course and its session."""
    seeder.standard_course()
    return seeder


# Participant type shorthands used across the tests
STUDENTS = ParticipantType.STUDENTS
INSTRUCTORS = ParticipantType.INSTRUCTORS
TEAMS = ParticipantType.TEAMS
RECEIVER = ParticipantType.RECEIVER
NONE = ParticipantType.NONE
SELF = ParticipantType.SELF
OWN_TEAM_MEMBERS = ParticipantType.OWN_TEAM_MEMBERS
RECEIVER_TEAM_MEMBERS = ParticipantType.RECEIVER_TEAM_MEMBERS
