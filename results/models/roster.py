"""In-memory roster snapshot used while building results."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.domain import FeedbackQuestion, Instructor, ParticipantType, Student
from shared.utils.constants import (
    GENERAL_QUESTION,
    USER_IS_MISSING,
    USER_IS_NOBODY,
    USER_TEAM_FOR_INSTRUCTOR,
)


class CourseRoster(BaseModel):
    """
    Students and instructors of one course, keyed by email.

    Loaded once per request; every lookup is pure.
    """
    model_config = ConfigDict(frozen=True)

    course_id: str
    students: dict[str, Student] = Field(default_factory=dict)
    instructors: dict[str, Instructor] = Field(default_factory=dict)

    @classmethod
    def from_lists(cls, course_id: str, students: list[Student], instructors: list[Instructor]) -> "CourseRoster":
        return cls(
            course_id=course_id,
            students={s.email: s for s in students},
            instructors={i.email: i for i in instructors},
        )

    # ── Participant lookups ────────────────────────────────

    def get_student_for_email(self, email: str) -> Optional[Student]:
        return self.students.get(email)

    def get_instructor_for_email(self, email: str) -> Optional[Instructor]:
        return self.instructors.get(email)

    def is_student_in_course(self, email: str) -> bool:
        return email in self.students

    def is_instructor_in_course(self, email: str) -> bool:
        return email in self.instructors

    @property
    def teams(self) -> set[str]:
        return {s.team for s in self.students.values()}

    def is_team(self, identifier: str) -> bool:
        return identifier in self.teams

    def get_team_for_email(self, email: str) -> Optional[str]:
        student = self.students.get(email)
        return student.team if student else None

    def get_students_for_team(self, team: str) -> list[Student]:
        return sorted((s for s in self.students.values() if s.team == team), key=lambda s: s.email)

    def get_teammate_emails(self, email: str) -> set[str]:
        """Emails of every student in the same team, including the student."""
        team = self.get_team_for_email(email)
        if team is None:
            return set()
        return {s.email for s in self.get_students_for_team(team)}

    def is_students_in_same_team(self, email_a: str, email_b: str) -> bool:
        team_a = self.get_team_for_email(email_a)
        return team_a is not None and team_a == self.get_team_for_email(email_b)

    # ── Display helpers ────────────────────────────────────
    # Unlike the results name tables these distinguish known teams from
    # missing participants.

    def get_full_name(self, identifier: str) -> str:
        if identifier == GENERAL_QUESTION:
            return USER_IS_NOBODY
        if identifier in self.students:
            return self.students[identifier].name
        if identifier in self.instructors:
            return self.instructors[identifier].name
        if self.is_team(identifier):
            return identifier
        return USER_IS_MISSING

    def get_last_name(self, identifier: str) -> str:
        if identifier == GENERAL_QUESTION:
            return USER_IS_NOBODY
        if identifier in self.students:
            return self.students[identifier].last_name
        if identifier in self.instructors:
            return self.instructors[identifier].name
        if self.is_team(identifier):
            return identifier
        return USER_IS_MISSING

    def get_team_name(self, identifier: str) -> str:
        if identifier in self.students:
            return self.students[identifier].team
        if identifier in self.instructors:
            return USER_TEAM_FOR_INSTRUCTOR
        if self.is_team(identifier):
            return identifier
        return ""

    def get_displayable_email(self, identifier: str) -> str:
        if identifier in self.students or identifier in self.instructors:
            return identifier
        return ""

    # ── Expected participants ──────────────────────────────

    def canonical_identifier(self, participant_type: ParticipantType, identifier: str) -> str:
        """Student emails stand for their team when the participant type is TEAMS."""
        if participant_type == ParticipantType.TEAMS:
            return self.get_team_for_email(identifier) or identifier
        return identifier

    def get_possible_givers(
        self,
        question: FeedbackQuestion,
        creator_email: str,
        section: Optional[str] = None,
    ) -> list[str]:
        """Identifiers expected to answer a question, sorted."""
        students = [s for s in self.students.values() if section is None or s.section == section]
        giver_type = question.giver_type
        if giver_type == ParticipantType.STUDENTS:
            return sorted(s.email for s in students)
        if giver_type == ParticipantType.TEAMS:
            return sorted({s.team for s in students})
        if giver_type == ParticipantType.INSTRUCTORS:
            return sorted(self.instructors)
        if giver_type == ParticipantType.SELF:
            return [creator_email]
        return []

    def get_possible_recipients(self, question: FeedbackQuestion, giver: str) -> list[str]:
        """Identifiers a giver is expected to answer about, sorted."""
        recipient_type = question.recipient_type
        giver_team = self.get_team_for_email(giver) or (giver if self.is_team(giver) else None)

        if recipient_type == ParticipantType.SELF:
            return [giver]
        if recipient_type == ParticipantType.STUDENTS:
            return sorted(e for e in self.students if e != giver)
        if recipient_type == ParticipantType.INSTRUCTORS:
            return sorted(e for e in self.instructors if e != giver)
        if recipient_type == ParticipantType.TEAMS:
            return sorted(t for t in self.teams if t != giver_team)
        if recipient_type == ParticipantType.OWN_TEAM:
            if giver_team is not None:
                return [giver_team]
            return [USER_TEAM_FOR_INSTRUCTOR] if giver in self.instructors else []
        if recipient_type in (
            ParticipantType.OWN_TEAM_MEMBERS,
            ParticipantType.OWN_TEAM_MEMBERS_INCLUDING_SELF,
        ):
            if giver_team is None:
                return []
            members = {s.email for s in self.get_students_for_team(giver_team)}
            if recipient_type == ParticipantType.OWN_TEAM_MEMBERS:
                members.discard(giver)
            return sorted(members)
        if recipient_type == ParticipantType.NONE:
            return [GENERAL_QUESTION]
        return []
