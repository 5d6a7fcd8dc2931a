"""Read-only results of a results or status query."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from results.models.roster import CourseRoster
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    ParticipantType,
    ResponseComment,
)
from shared.utils.constants import ANONYMOUS, TEAM_OF_EMAIL_OWNER, USER_TEAM_FOR_INSTRUCTOR

GIVER = 0
RECIPIENT = 1


class ResponseStatus(BaseModel):
    """Who has not responded to a session, with display metadata."""
    model_config = ConfigDict(frozen=True)

    no_response: tuple[str, ...] = ()
    email_name_table: dict[str, str] = Field(default_factory=dict)
    email_section_table: dict[str, str] = Field(default_factory=dict)
    email_team_name_table: dict[str, str] = Field(default_factory=dict)

    def get_participants_who_did_not_respond(self) -> list[str]:
        """Non-respondents with a known name, sorted by name then identifier."""
        known = [e for e in self.no_response if e in self.email_name_table]
        return sorted(known, key=lambda e: (self.email_name_table[e], e))

    def get_teams_with_instructor_team(self) -> dict[str, str]:
        """Team table where non-respondents without a team are labelled as instructors."""
        teams = dict(self.email_team_name_table)
        for email in self.get_participants_who_did_not_respond():
            if email not in teams:
                teams[email] = USER_TEAM_FOR_INSTRUCTOR
        return teams


class ResultsBundle(BaseModel):
    """
    Responses and comments a viewer may see, with their lookup tables.

    Table keys are raw participant identifiers. Hidden names are only
    substituted at display time by the giver_* / recipient_* helpers.
    """
    model_config = ConfigDict(frozen=True)

    session: FeedbackSession
    roster: CourseRoster
    questions: dict[str, FeedbackQuestion] = Field(default_factory=dict)
    responses: tuple[FeedbackResponse, ...] = ()
    response_comments: dict[str, tuple[ResponseComment, ...]] = Field(default_factory=dict)
    email_name_table: dict[str, str] = Field(default_factory=dict)
    email_last_name_table: dict[str, str] = Field(default_factory=dict)
    email_team_name_table: dict[str, str] = Field(default_factory=dict)
    section_team_name_table: dict[str, frozenset[str]] = Field(default_factory=dict)
    visibility_table: dict[str, tuple[bool, bool]] = Field(default_factory=dict)
    response_status: Optional[ResponseStatus] = None
    complete: bool = True
    section: Optional[str] = None

    @classmethod
    def empty(cls, session: FeedbackSession, roster: CourseRoster) -> "ResultsBundle":
        return cls(session=session, roster=roster)

    @property
    def is_empty(self) -> bool:
        return not self.questions and not self.responses

    # ── Visibility ─────────────────────────────────────────

    def is_giver_visible(self, response: FeedbackResponse) -> bool:
        return self.visibility_table.get(response.id, (True, True))[GIVER]

    def is_recipient_visible(self, response: FeedbackResponse) -> bool:
        return self.visibility_table.get(response.id, (True, True))[RECIPIENT]

    # ── Name lookups ───────────────────────────────────────

    def get_name_for_email(self, identifier: str) -> str:
        return self.email_name_table.get(identifier, "")

    def get_last_name_for_email(self, identifier: str) -> str:
        return self.email_last_name_table.get(identifier, "")

    def get_team_name_for_email(self, identifier: str) -> str:
        return self.email_team_name_table.get(identifier, "")

    def get_giver_name(self, response: FeedbackResponse) -> str:
        if not self.is_giver_visible(response):
            return ANONYMOUS
        return self.get_name_for_email(self._giver_key(response))

    def get_giver_last_name(self, response: FeedbackResponse) -> str:
        if not self.is_giver_visible(response):
            return ANONYMOUS
        return self.get_last_name_for_email(self._giver_key(response))

    def get_giver_team_name(self, response: FeedbackResponse) -> str:
        if not self.is_giver_visible(response):
            return ""
        return self.get_team_name_for_email(self._giver_key(response))

    def get_giver_displayable_email(self, response: FeedbackResponse) -> str:
        if not self.is_giver_visible(response):
            return ""
        return self.roster.get_displayable_email(response.giver_email)

    def get_recipient_name(self, response: FeedbackResponse) -> str:
        if not self.is_recipient_visible(response):
            return ANONYMOUS
        return self.get_name_for_email(response.recipient_email)

    def get_recipient_last_name(self, response: FeedbackResponse) -> str:
        if not self.is_recipient_visible(response):
            return ANONYMOUS
        return self.get_last_name_for_email(response.recipient_email)

    def get_recipient_team_name(self, response: FeedbackResponse) -> str:
        if not self.is_recipient_visible(response):
            return ""
        return self.get_team_name_for_email(response.recipient_email)

    def get_recipient_displayable_email(self, response: FeedbackResponse) -> str:
        if not self.is_recipient_visible(response):
            return ""
        return self.roster.get_displayable_email(response.recipient_email)

    # ── Ordering ───────────────────────────────────────────

    def get_ordered_questions(self) -> list[FeedbackQuestion]:
        return sorted(self.questions.values(), key=lambda q: q.question_number)

    def get_responses_sorted_by_giver_recipient_question(self) -> list[FeedbackResponse]:
        """A sorted copy; ties keep their original order."""
        return sorted(
            self.responses,
            key=lambda r: (r.giver_email, r.recipient_email, self._question_number(r)),
        )

    def get_question_response_map(
        self,
        responses: Optional[list[FeedbackResponse]] = None,
    ) -> list[tuple[FeedbackQuestion, list[FeedbackResponse]]]:
        """Every relevant question in order, paired with its responses."""
        source = self.responses if responses is None else responses
        grouped: dict[str, list[FeedbackResponse]] = {qid: [] for qid in self.questions}
        for response in source:
            if response.question_id in grouped:
                grouped[response.question_id].append(response)
        return [(q, grouped[q.id]) for q in self.get_ordered_questions()]

    def get_comments_for_response(self, response_id: str) -> tuple[ResponseComment, ...]:
        return self.response_comments.get(response_id, ())

    # ── Expected participants ──────────────────────────────

    def get_possible_givers(self, question: FeedbackQuestion) -> list[str]:
        return self.roster.get_possible_givers(question, self.session.creator_email, self.section)

    def get_possible_recipients(self, question: FeedbackQuestion, giver: str) -> list[str]:
        return self.roster.get_possible_recipients(question, giver)

    # ── Private helpers ───────────────────────────────────

    def _giver_key(self, response: FeedbackResponse) -> str:
        question = self.questions.get(response.question_id)
        if question is not None and question.giver_type == ParticipantType.TEAMS:
            team_key = response.giver_email + TEAM_OF_EMAIL_OWNER
            if team_key in self.email_name_table:
                return team_key
        return response.giver_email

    def _question_number(self, response: FeedbackResponse) -> int:
        question = self.questions.get(response.question_id)
        return question.question_number if question else 0
