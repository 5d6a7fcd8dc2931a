"""Unit tests for results/services/results_service.py: FeedbackResultsService."""
from datetime import datetime

import pytest

from conftest import COURSE_ID, CREATOR, HELPER, SESSION_NAME, INSTRUCTORS, NONE, RECEIVER, SELF, STUDENTS
from results.services.results_service import FeedbackResultsService
from shared.models.domain import Role, SectionFilter, SessionType
from shared.utils.constants import ANONYMOUS, GENERAL_QUESTION, USER_IS_NOBODY
from shared.utils.exceptions import (
    InconsistentQueryError,
    ParticipantNotFoundException,
    QuestionNotFoundException,
    SessionNotFoundException,
)

ALICE = "alice@example.com"
BOB = "bob@example.com"
CAROL = "carol@example.com"
DAVE = "dave@example.com"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _create_peer_question(course, question_id="q1", number=1):
    """Student-to-student question visible to instructors and receivers."""
    return course.question(
        question_id,
        number,
        STUDENTS,
        STUDENTS,
        show_responses_to=[INSTRUCTORS, RECEIVER],
        show_giver_name_to=[INSTRUCTORS],
        show_recipient_name_to=[INSTRUCTORS, RECEIVER],
    )


def _create_peer_responses(course, question):
    """alice -> carol crosses sections; bob -> alice and carol -> dave stay inside theirs."""
    return [
        course.response(question, ALICE, CAROL, "Helpful", "Section A", "Section B"),
        course.response(question, BOB, ALICE, "Reliable", "Section A", "Section A"),
        course.response(question, CAROL, DAVE, "Quiet", "Section B", "Section B"),
    ]


def _session_results(db, viewer, role, section_filter=SectionFilter.IN_SECTION, **kwargs):
    return FeedbackResultsService(db).build_results_for_section_within_range(
        COURSE_ID, SESSION_NAME, viewer, role, section_filter, **kwargs
    )


def _pairs(bundle):
    return {(r.giver_email, r.recipient_email) for r in bundle.responses}


# ---------------------------------------------------------------------------
# build_results_for_section_within_range
# ---------------------------------------------------------------------------

class TestSessionResults:
    """Tests for whole-session results."""

    def test_creator_sees_every_response(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(db_session, CREATOR, Role.INSTRUCTOR)

        assert _pairs(bundle) == {(ALICE, CAROL), (BOB, ALICE), (CAROL, DAVE)}
        assert set(bundle.questions) == {"q1"}
        assert bundle.complete is True
        assert bundle.response_status is not None
        assert bundle.get_giver_name(bundle.responses[0]) == "Alice Tan"

    def test_section_helper_sees_only_responses_inside_granted_sections(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(db_session, HELPER, Role.INSTRUCTOR)

        assert _pairs(bundle) == {(BOB, ALICE)}
        assert bundle.section_team_name_table == {"Section A": frozenset({"Team 1"})}

    def test_student_sees_given_and_received_responses(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(db_session, CAROL, Role.STUDENT)

        assert _pairs(bundle) == {(ALICE, CAROL), (CAROL, DAVE)}
        received = next(r for r in bundle.responses if r.giver_email == ALICE)
        assert bundle.get_giver_name(received) == ANONYMOUS
        assert bundle.get_giver_displayable_email(received) == ""
        assert bundle.get_recipient_name(received) == "Carol Ng"

    def test_student_without_visible_responses_gets_no_questions(self, db_session, course):
        question = _create_peer_question(course)
        course.response(question, ALICE, BOB, "Fine", "Section A", "Section A")

        bundle = _session_results(db_session, DAVE, Role.STUDENT)

        assert bundle.responses == ()
        assert bundle.questions == {}

    def test_from_section_filter(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(
            db_session, CREATOR, Role.INSTRUCTOR, SectionFilter.FROM_SECTION, section="Section B"
        )

        assert _pairs(bundle) == {(CAROL, DAVE)}
        assert bundle.response_status is None

    def test_missing_section_filter_raises(self, db_session, course):
        with pytest.raises(InconsistentQueryError):
            _session_results(db_session, CREATOR, Role.INSTRUCTOR, section_filter=None)

    def test_unknown_session_raises(self, db_session, course):
        with pytest.raises(SessionNotFoundException):
            FeedbackResultsService(db_session).build_results_for_section_within_range(
                COURSE_ID, "No such session", CREATOR, Role.INSTRUCTOR, SectionFilter.IN_SECTION
            )

    def test_unknown_student_viewer_raises(self, db_session, course):
        with pytest.raises(ParticipantNotFoundException):
            _session_results(db_session, "ghost@example.com", Role.STUDENT)

    def test_results_are_idempotent(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        first = _session_results(db_session, CREATOR, Role.INSTRUCTOR)
        second = _session_results(db_session, CREATOR, Role.INSTRUCTOR)

        assert first == second


class TestSessionResultsRange:
    """Tests for the bounded result range."""

    def test_exceeding_range_returns_questions_only(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(db_session, CREATOR, Role.INSTRUCTOR, limit=2)

        assert bundle.complete is False
        assert bundle.responses == ()
        assert set(bundle.questions) == {"q1"}
        assert bundle.response_status is None

    def test_range_equal_to_count_is_complete(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)

        bundle = _session_results(db_session, CREATOR, Role.INSTRUCTOR, limit=3)

        assert bundle.complete is True
        assert len(bundle.responses) == 3


# ---------------------------------------------------------------------------
# Private sessions
# ---------------------------------------------------------------------------

class TestPrivateSessions:
    """Tests for private session handling."""

    def _create_private_session(self, course):
        course.session("Private notes", SessionType.PRIVATE)
        question = course.question("p1", 1, SELF, NONE, session_name="Private notes")
        course.response(question, CREATOR, GENERAL_QUESTION, "Note to self")

    def test_non_creator_gets_empty_bundle(self, db_session, course):
        self._create_private_session(course)
        service = FeedbackResultsService(db_session)

        by_range = service.build_results_for_section_within_range(
            COURSE_ID, "Private notes", HELPER, Role.INSTRUCTOR, SectionFilter.IN_SECTION
        )
        by_question = service.build_results_for_user_by_questions(
            COURSE_ID, "Private notes", HELPER, Role.INSTRUCTOR
        )
        single = service.build_results_for_question(COURSE_ID, "Private notes", HELPER, "p1")

        assert by_range.is_empty
        assert by_question.is_empty
        assert single.is_empty

    def test_creator_sees_own_notes(self, db_session, course):
        self._create_private_session(course)

        bundle = FeedbackResultsService(db_session).build_results_for_user_by_questions(
            COURSE_ID, "Private notes", CREATOR, Role.INSTRUCTOR
        )

        assert [r.answer for r in bundle.responses] == ["Note to self"]
        assert bundle.get_recipient_name(bundle.responses[0]) == USER_IS_NOBODY


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class TestComments:
    """Tests for comments attached to results."""

    def test_comments_are_ordered_by_creation_time(self, db_session, course):
        question = _create_peer_question(course)
        response = course.response(question, ALICE, CAROL, "Helpful", "Section A", "Section B")
        course.comment("c-late", response, CREATOR, "Second", created_at=datetime(2024, 3, 2, 12, 0))
        course.comment("c-early", response, CREATOR, "First", created_at=datetime(2024, 3, 2, 8, 0))

        bundle = _session_results(db_session, CREATOR, Role.INSTRUCTOR)

        comments = bundle.get_comments_for_response(response.id)
        assert [c.comment_text for c in comments] == ["First", "Second"]

    def test_hidden_comment_author_is_anonymized(self, db_session, course):
        question = _create_peer_question(course)
        response = course.response(question, ALICE, CAROL, "Helpful", "Section A", "Section B")
        course.comment(
            "c1",
            response,
            ALICE,
            "Happy to help",
            show_comment_to=[RECEIVER, INSTRUCTORS],
            show_giver_name_to=[INSTRUCTORS],
        )

        for_carol = _session_results(db_session, CAROL, Role.STUDENT)
        for_creator = _session_results(db_session, CREATOR, Role.INSTRUCTOR)

        assert [c.author_email for c in for_carol.get_comments_for_response(response.id)] == [ANONYMOUS]
        assert [c.author_email for c in for_creator.get_comments_for_response(response.id)] == [ALICE]

    def test_comments_can_be_skipped(self, db_session, course):
        question = _create_peer_question(course)
        response = course.response(question, ALICE, CAROL, "Helpful", "Section A", "Section B")
        course.comment("c1", response, CREATOR, "Noted")

        bundle = _session_results(db_session, CREATOR, Role.INSTRUCTOR, include_comments=False)

        assert bundle.response_comments == {}


# ---------------------------------------------------------------------------
# build_results_for_question
# ---------------------------------------------------------------------------

class TestQuestionResults:
    """Tests for single-question results."""

    def test_response_rate_pseudo_question(self, db_session, course):
        _create_peer_question(course)
        course.responded(ALICE)

        bundle = FeedbackResultsService(db_session).build_results_for_question(
            COURSE_ID, SESSION_NAME, CREATOR, "-1"
        )

        assert bundle.responses == ()
        assert bundle.response_status.get_participants_who_did_not_respond() == [BOB, CAROL, DAVE]

    def test_single_question_respects_sections(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)
        other = _create_peer_question(course, "q2", 2)
        course.response(other, BOB, ALICE, "Again", "Section A", "Section A")

        bundle = FeedbackResultsService(db_session).build_results_for_question(
            COURSE_ID, SESSION_NAME, HELPER, "q1"
        )

        assert set(bundle.questions) == {"q1"}
        assert _pairs(bundle) == {(BOB, ALICE)}

    def test_unknown_question_raises(self, db_session, course):
        with pytest.raises(QuestionNotFoundException):
            FeedbackResultsService(db_session).build_results_for_question(
                COURSE_ID, SESSION_NAME, CREATOR, "missing"
            )


# ---------------------------------------------------------------------------
# build_results_for_user_by_questions
# ---------------------------------------------------------------------------

class TestResultsByQuestion:
    """Tests for results gathered question by question."""

    def test_only_questions_with_visible_responses(self, db_session, course):
        question = _create_peer_question(course)
        _create_peer_responses(course, question)
        general = course.question("q2", 2, STUDENTS, NONE, show_responses_to=[INSTRUCTORS])
        course.response(general, DAVE, GENERAL_QUESTION, "More labs please", "Section B", "None")
        service = FeedbackResultsService(db_session)

        for_alice = service.build_results_for_user_by_questions(COURSE_ID, SESSION_NAME, ALICE, Role.STUDENT)
        for_creator = service.build_results_for_user_by_questions(COURSE_ID, SESSION_NAME, CREATOR, Role.INSTRUCTOR)

        assert set(for_alice.questions) == {"q1"}
        assert _pairs(for_alice) == {(ALICE, CAROL), (BOB, ALICE)}
        assert set(for_creator.questions) == {"q1", "q2"}
        assert [q.id for q, _ in for_creator.get_question_response_map()] == ["q1", "q2"]

    def test_general_recipient_name(self, db_session, course):
        general = course.question(
            "q2", 1, STUDENTS, NONE,
            show_responses_to=[INSTRUCTORS],
            show_giver_name_to=[INSTRUCTORS],
            show_recipient_name_to=[INSTRUCTORS],
        )
        course.response(general, DAVE, GENERAL_QUESTION, "More labs please", "Section B", "None")

        bundle = FeedbackResultsService(db_session).build_results_for_user_by_questions(
            COURSE_ID, SESSION_NAME, CREATOR, Role.INSTRUCTOR
        )

        response = bundle.responses[0]
        assert bundle.get_recipient_name(response) == "Nobody specific (For general class feedback)"
        assert bundle.get_recipient_team_name(response) == ""
