"""Participant identifier -> display name resolution for results tables."""
from typing import NamedTuple

from results.models.roster import CourseRoster
from shared.models.domain import FeedbackQuestion, FeedbackResponse, ParticipantType
from shared.utils.constants import (
    GENERAL_QUESTION,
    TEAM_OF_EMAIL_OWNER,
    USER_IS_MISSING,
    USER_IS_NOBODY,
    USER_TEAM_FOR_INSTRUCTOR,
)

# Participant types whose identifiers are displayed as team names
_TEAM_DISPLAY_TYPES = frozenset({ParticipantType.TEAMS, ParticipantType.OWN_TEAM})


class NameTeamName(NamedTuple):
    name: str
    last_name: str
    team_name: str


def resolve_name_team_name(
    participant_type: ParticipantType,
    identifier: str,
    roster: CourseRoster,
) -> NameTeamName:
    """
    Resolve an identifier to (name, last name, team name).

    Total over every identifier: a student, an instructor, the general
    recipient or anything else. Anything else, a team name included,
    resolves to the missing-user sentinel before the participant type
    is applied.
    """
    student = roster.get_student_for_email(identifier)
    instructor = roster.get_instructor_for_email(identifier)
    if student is not None:
        name, last_name, team = student.name, student.last_name, student.team
    elif instructor is not None:
        name, last_name, team = instructor.name, instructor.name, USER_TEAM_FOR_INSTRUCTOR
    elif identifier == GENERAL_QUESTION:
        name, last_name, team = USER_IS_NOBODY, USER_IS_NOBODY, identifier
    else:
        name, last_name, team = USER_IS_MISSING, USER_IS_MISSING, identifier

    if participant_type in _TEAM_DISPLAY_TYPES:
        return NameTeamName(team, team, "")
    if name in (USER_IS_NOBODY, USER_IS_MISSING):
        return NameTeamName(name, last_name, "")
    return NameTeamName(name, last_name, team)


class NameTables:
    """
    The name, last-name and team-name tables of a results bundle.

    The first registration of an identifier wins.
    """

    def __init__(self, roster: CourseRoster):
        self.roster = roster
        self.names: dict[str, str] = {}
        self.last_names: dict[str, str] = {}
        self.team_names: dict[str, str] = {}

    def register(self, response: FeedbackResponse, question: FeedbackQuestion) -> None:
        giver = response.giver_email
        if question.giver_type == ParticipantType.TEAMS and self.roster.is_student_in_course(giver):
            resolved = resolve_name_team_name(question.giver_type, giver, self.roster)
            self._put(giver + TEAM_OF_EMAIL_OWNER, resolved)
            self._put(self.roster.get_team_for_email(giver), resolved)
        else:
            self._put(giver, resolve_name_team_name(question.giver_type, giver, self.roster))

        recipient = response.recipient_email
        self._put(recipient, resolve_name_team_name(question.resolved_recipient_type, recipient, self.roster))

    def _put(self, key: str, resolved: NameTeamName) -> None:
        self.names.setdefault(key, resolved.name)
        self.last_names.setdefault(key, resolved.last_name)
        self.team_names.setdefault(key, resolved.team_name)
