"""Domain models for business logic."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from shared.utils.constants import ALL_SECTION_PRIVILEGES, DEFAULT_SECTION


class ParticipantType(str, Enum):
    """Who may give, receive or see a response."""
    SELF = "SELF"
    STUDENTS = "STUDENTS"
    INSTRUCTORS = "INSTRUCTORS"
    TEAMS = "TEAMS"
    OWN_TEAM = "OWN_TEAM"
    OWN_TEAM_MEMBERS = "OWN_TEAM_MEMBERS"
    OWN_TEAM_MEMBERS_INCLUDING_SELF = "OWN_TEAM_MEMBERS_INCLUDING_SELF"
    RECEIVER = "RECEIVER"
    RECEIVER_TEAM_MEMBERS = "RECEIVER_TEAM_MEMBERS"
    NONE = "NONE"
    GIVER = "GIVER"


class Role(str, Enum):
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"


class SessionType(str, Enum):
    STANDARD = "STANDARD"
    PRIVATE = "PRIVATE"


class QuestionType(str, Enum):
    TEXT = "TEXT"
    MCQ = "MCQ"
    NUMSCALE = "NUMSCALE"


class RespondentKind(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class SectionFilter(str, Enum):
    """Which side of a response a section query matches on."""
    IN_SECTION = "in_section"      # giver or recipient in the section
    FROM_SECTION = "from_section"  # giver in the section
    TO_SECTION = "to_section"      # recipient in the section


class Student(BaseModel):
    """Student enrolled in a course."""
    email: str
    course_id: str
    name: str
    last_name: Optional[str] = None
    team: str
    section: str = DEFAULT_SECTION

    @model_validator(mode="after")
    def _fill_last_name(self) -> "Student":
        if not self.last_name:
            parts = self.name.split()
            self.last_name = parts[-1] if parts else self.name
        return self


class InstructorPrivileges(BaseModel):
    """Course, section and session level privilege grants.

    The most specific grant wins: session-in-section, then section, then course.
    """
    course_level: set[str] = Field(default_factory=lambda: set(ALL_SECTION_PRIVILEGES))
    section_level: dict[str, set[str]] = Field(default_factory=dict)
    session_level: dict[str, dict[str, set[str]]] = Field(default_factory=dict)

    def is_allowed(self, section: Optional[str], session_name: Optional[str], privilege: str) -> bool:
        if section is not None:
            sessions = self.session_level.get(section, {})
            if session_name is not None and session_name in sessions:
                return privilege in sessions[session_name]
            if section in self.section_level:
                return privilege in self.section_level[section]
        return privilege in self.course_level


class Instructor(BaseModel):
    """Instructor of a course."""
    email: str
    course_id: str
    name: str
    privileges: InstructorPrivileges = Field(default_factory=InstructorPrivileges)

    def is_allowed_for_privilege(self, section: Optional[str], session_name: Optional[str], privilege: str) -> bool:
        return self.privileges.is_allowed(section, session_name, privilege)


class FeedbackSession(BaseModel):
    """A feedback session together with its recorded respondents."""
    course_id: str
    session_name: str
    session_type: SessionType = SessionType.STANDARD
    creator_email: str
    instructions: str = ""
    visible_time: Optional[datetime] = None
    publish_time: Optional[datetime] = None
    respondent_students: set[str] = Field(default_factory=set)
    respondent_instructors: set[str] = Field(default_factory=set)

    @property
    def is_private(self) -> bool:
        return self.session_type == SessionType.PRIVATE

    def is_creator(self, email: Optional[str]) -> bool:
        return email is not None and self.creator_email == email

    def is_visible(self, now: Optional[datetime] = None) -> bool:
        if self.visible_time is None:
            return False
        return self.visible_time <= (now or datetime.utcnow())

    def is_published(self, now: Optional[datetime] = None) -> bool:
        if self.publish_time is None:
            return False
        return self.publish_time <= (now or datetime.utcnow())


class FeedbackQuestion(BaseModel):
    """A question in a feedback session with its visibility configuration."""
    id: str
    course_id: str
    session_name: str
    question_number: int = Field(ge=1)
    question_text: str
    question_type: QuestionType = QuestionType.TEXT
    options: list[str] = Field(default_factory=list)  # MCQ choices
    giver_type: ParticipantType
    recipient_type: ParticipantType
    show_responses_to: set[ParticipantType] = Field(default_factory=set)
    show_giver_name_to: set[ParticipantType] = Field(default_factory=set)
    show_recipient_name_to: set[ParticipantType] = Field(default_factory=set)
    show_missing_responses: bool = True

    def is_response_visible_to(self, participant_type: ParticipantType) -> bool:
        return participant_type in self.show_responses_to

    @property
    def resolved_recipient_type(self) -> ParticipantType:
        """Recipient type with SELF resolved to the giver type."""
        if self.recipient_type == ParticipantType.SELF:
            return self.giver_type
        return self.recipient_type

    @property
    def is_for_students(self) -> bool:
        return self.giver_type in (ParticipantType.STUDENTS, ParticipantType.TEAMS)

    def is_for_instructor(self, is_creator: bool) -> bool:
        if self.giver_type == ParticipantType.INSTRUCTORS:
            return True
        return self.giver_type == ParticipantType.SELF and is_creator


class FeedbackResponse(BaseModel):
    """A single giver -> recipient answer to a question."""
    question_id: str
    course_id: str
    session_name: str
    giver_email: str
    giver_section: str = DEFAULT_SECTION
    recipient_email: str
    recipient_section: str = DEFAULT_SECTION
    answer: str = ""
    is_anonymous: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def id(self) -> str:
        return make_response_id(self.question_id, self.giver_email, self.recipient_email)


class ResponseComment(BaseModel):
    """A comment attached to a response.

    ``show_comment_to`` of None means the comment follows the visibility of
    its question.
    """
    id: str
    course_id: str
    session_name: str
    question_id: str
    response_id: str
    author_email: str
    comment_text: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    giver_section: str = DEFAULT_SECTION
    recipient_section: str = DEFAULT_SECTION
    show_comment_to: Optional[set[ParticipantType]] = None
    show_giver_name_to: Optional[set[ParticipantType]] = None

    @property
    def is_visibility_following_question(self) -> bool:
        return self.show_comment_to is None


def make_response_id(question_id: str, giver_email: str, recipient_email: str) -> str:
    return f"{question_id}%{giver_email}%{recipient_email}"
