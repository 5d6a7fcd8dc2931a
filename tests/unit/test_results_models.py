"""Unit tests for results/models: CourseRoster and ResultsBundle."""
import pytest

from results.models.bundle import ResultsBundle
from results.models.roster import CourseRoster
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    Instructor,
    ParticipantType as PT,
    Student,
)
from shared.utils.constants import ANONYMOUS, GENERAL_QUESTION, USER_IS_MISSING, USER_IS_NOBODY

ALICE = "alice@example.com"
BOB = "bob@example.com"
CAROL = "carol@example.com"
INSTRUCTOR = "inst@example.com"


@pytest.fixture
def roster():
    return CourseRoster.from_lists(
        "CS101",
        [
            Student(email=ALICE, course_id="CS101", name="Alice Tan", team="Team 1", section="Section A"),
            Student(email=BOB, course_id="CS101", name="Bob Lee", team="Team 1", section="Section A"),
            Student(email=CAROL, course_id="CS101", name="Carol Ng", team="Team 2", section="Section B"),
        ],
        [Instructor(email=INSTRUCTOR, course_id="CS101", name="Ivy Instructor")],
    )


def _question(giver=PT.STUDENTS, recipient=PT.STUDENTS, question_id="q1", number=1):
    return FeedbackQuestion(
        id=question_id,
        course_id="CS101",
        session_name="Mid-term",
        question_number=number,
        question_text="Feedback",
        giver_type=giver,
        recipient_type=recipient,
    )


def _response(giver, recipient, question_id="q1"):
    return FeedbackResponse(
        question_id=question_id,
        course_id="CS101",
        session_name="Mid-term",
        giver_email=giver,
        recipient_email=recipient,
    )


# ---------------------------------------------------------------------------
# CourseRoster
# ---------------------------------------------------------------------------

class TestCourseRoster:
    """Tests for roster lookups and expected participants."""

    def test_teams_and_teammates(self, roster):
        assert roster.teams == {"Team 1", "Team 2"}
        assert roster.get_teammate_emails(ALICE) == {ALICE, BOB}
        assert roster.get_teammate_emails(INSTRUCTOR) == set()
        assert roster.is_students_in_same_team(ALICE, BOB)
        assert not roster.is_students_in_same_team(ALICE, CAROL)

    def test_display_helpers_distinguish_teams(self, roster):
        assert roster.get_full_name("Team 2") == "Team 2"
        assert roster.get_team_name("Team 2") == "Team 2"
        assert roster.get_full_name("ghost@example.com") == USER_IS_MISSING
        assert roster.get_full_name(GENERAL_QUESTION) == USER_IS_NOBODY
        assert roster.get_team_name(INSTRUCTOR) == "Instructors"
        assert roster.get_displayable_email("Team 2") == ""

    def test_possible_givers(self, roster):
        assert roster.get_possible_givers(_question(giver=PT.STUDENTS), INSTRUCTOR) == [ALICE, BOB, CAROL]
        assert roster.get_possible_givers(_question(giver=PT.TEAMS), INSTRUCTOR) == ["Team 1", "Team 2"]
        assert roster.get_possible_givers(_question(giver=PT.SELF), INSTRUCTOR) == [INSTRUCTOR]
        assert roster.get_possible_givers(_question(giver=PT.STUDENTS), INSTRUCTOR, "Section B") == [CAROL]

    def test_possible_recipients(self, roster):
        assert roster.get_possible_recipients(_question(recipient=PT.STUDENTS), ALICE) == [BOB, CAROL]
        assert roster.get_possible_recipients(_question(recipient=PT.TEAMS), ALICE) == ["Team 2"]
        assert roster.get_possible_recipients(_question(recipient=PT.TEAMS), "Team 1") == ["Team 2"]
        assert roster.get_possible_recipients(_question(recipient=PT.OWN_TEAM), BOB) == ["Team 1"]
        assert roster.get_possible_recipients(_question(recipient=PT.OWN_TEAM), INSTRUCTOR) == ["Instructors"]
        assert roster.get_possible_recipients(_question(recipient=PT.OWN_TEAM_MEMBERS), ALICE) == [BOB]
        assert roster.get_possible_recipients(
            _question(recipient=PT.OWN_TEAM_MEMBERS_INCLUDING_SELF), ALICE
        ) == [ALICE, BOB]
        assert roster.get_possible_recipients(_question(recipient=PT.NONE), ALICE) == [GENERAL_QUESTION]
        assert roster.get_possible_recipients(_question(recipient=PT.SELF), ALICE) == [ALICE]

    def test_canonical_identifier(self, roster):
        assert roster.canonical_identifier(PT.TEAMS, ALICE) == "Team 1"
        assert roster.canonical_identifier(PT.STUDENTS, ALICE) == ALICE


# ---------------------------------------------------------------------------
# ResultsBundle
# ---------------------------------------------------------------------------

class TestResultsBundle:
    """Tests for bundle display helpers and ordering."""

    def _bundle(self, roster, questions, responses, visibility=None):
        return ResultsBundle(
            session=FeedbackSession(course_id="CS101", session_name="Mid-term", creator_email=INSTRUCTOR),
            roster=roster,
            questions={q.id: q for q in questions},
            responses=tuple(responses),
            email_name_table={ALICE: "Alice Tan", BOB: "Bob Lee", f"{ALICE}'s Team": "Team 1"},
            email_last_name_table={ALICE: "Tan", BOB: "Lee"},
            email_team_name_table={ALICE: "Team 1", BOB: "Team 1"},
            visibility_table=visibility or {},
        )

    def test_empty_bundle(self, roster):
        bundle = ResultsBundle.empty(
            FeedbackSession(course_id="CS101", session_name="Mid-term", creator_email=INSTRUCTOR), roster
        )
        assert bundle.is_empty
        assert bundle.complete

    def test_hidden_giver_is_anonymous(self, roster):
        response = _response(ALICE, BOB)
        bundle = self._bundle(roster, [_question()], [response], {response.id: (False, True)})
        assert bundle.get_giver_name(response) == ANONYMOUS
        assert bundle.get_giver_last_name(response) == ANONYMOUS
        assert bundle.get_giver_team_name(response) == ""
        assert bundle.get_giver_displayable_email(response) == ""
        assert bundle.get_recipient_name(response) == "Bob Lee"
        assert bundle.get_recipient_displayable_email(response) == BOB

    def test_team_giver_uses_team_key(self, roster):
        response = _response(ALICE, "Team 2")
        bundle = self._bundle(roster, [_question(giver=PT.TEAMS, recipient=PT.TEAMS)], [response])
        assert bundle.get_giver_name(response) == "Team 1"

    def test_sorted_by_giver_recipient_question(self, roster):
        first = _question()
        second = _question(question_id="q2", number=2)
        responses = [_response(BOB, ALICE, "q2"), _response(ALICE, BOB, "q2"), _response(ALICE, BOB, "q1")]
        bundle = self._bundle(roster, [second, first], responses)

        ordered = bundle.get_responses_sorted_by_giver_recipient_question()

        assert [(r.giver_email, r.question_id) for r in ordered] == [(ALICE, "q1"), (ALICE, "q2"), (BOB, "q2")]
        assert [q.id for q, _ in bundle.get_question_response_map()] == ["q1", "q2"]
        assert len(dict((q.id, rs) for q, rs in bundle.get_question_response_map())["q2"]) == 2
