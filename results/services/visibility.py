"""
Visibility rules for responses, response names and comments.

Every function here is pure: the decision depends only on its arguments.
Rules are evaluated in order and the first match wins.
"""
from typing import Callable, Optional

from results.models.roster import CourseRoster
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    Instructor,
    ParticipantType,
    ResponseComment,
    Role,
    Student,
)
from shared.utils.constants import PRIVILEGE_VIEW_SESSION_IN_SECTIONS


# ── Responses ──────────────────────────────────────────────

def is_response_directly_visible(
    viewer_email: str,
    role: Role,
    response: FeedbackResponse,
    question: FeedbackQuestion,
) -> bool:
    """Giver, receiver, instructor and student rules without team refinements."""
    if response.giver_email == viewer_email:
        return True
    if role == Role.INSTRUCTOR and question.is_response_visible_to(ParticipantType.INSTRUCTORS):
        return True
    if response.recipient_email == viewer_email and question.is_response_visible_to(ParticipantType.RECEIVER):
        return True
    return role == Role.STUDENT and question.is_response_visible_to(ParticipantType.STUDENTS)


def is_response_visible(
    viewer_email: str,
    role: Role,
    response: FeedbackResponse,
    question: FeedbackQuestion,
    viewer_student: Optional[Student] = None,
    teammate_emails: frozenset[str] = frozenset(),
) -> bool:
    """Whether a viewer may see a response, before any section restriction."""
    if is_response_directly_visible(viewer_email, role, response, question):
        return True
    if role != Role.STUDENT:
        return False

    # Student-only team refinements
    if (
        question.recipient_type == ParticipantType.TEAMS
        and question.is_response_visible_to(ParticipantType.RECEIVER)
        and viewer_student is not None
        and response.recipient_email == viewer_student.team
    ):
        return True
    if question.giver_type == ParticipantType.TEAMS and response.giver_email in teammate_emails:
        return True
    if question.is_response_visible_to(ParticipantType.OWN_TEAM_MEMBERS) and response.giver_email in teammate_emails:
        return True
    return (
        question.is_response_visible_to(ParticipantType.RECEIVER_TEAM_MEMBERS)
        and response.recipient_email in teammate_emails
    )


# ── Section privileges ─────────────────────────────────────

def is_allowed_by_section(
    instructor: Optional[Instructor],
    response: FeedbackResponse,
    question: FeedbackQuestion,
) -> bool:
    """
    Whether an instructor's section grants cover a response.

    Non-instructors are never restricted. Responses to a general (NONE)
    recipient are only checked on the giver side.
    """
    if instructor is None:
        return True
    if not instructor.is_allowed_for_privilege(
        response.giver_section, response.session_name, PRIVILEGE_VIEW_SESSION_IN_SECTIONS
    ):
        return False
    if question.recipient_type == ParticipantType.NONE:
        return True
    return instructor.is_allowed_for_privilege(
        response.recipient_section, response.session_name, PRIVILEGE_VIEW_SESSION_IN_SECTIONS
    )


# ── Names ──────────────────────────────────────────────────

_NameRule = Callable[[FeedbackQuestion, FeedbackResponse, str, Role, CourseRoster], bool]


def _is_receiver(question, response, viewer_email, role, roster) -> bool:
    if response.recipient_email == viewer_email:
        return True
    return (
        question.recipient_type == ParticipantType.TEAMS
        and roster.get_team_for_email(viewer_email) == response.recipient_email
    )


def _is_giver_teammate(question, response, viewer_email, role, roster) -> bool:
    return roster.is_students_in_same_team(viewer_email, response.giver_email)


_NAME_RULES: dict[ParticipantType, _NameRule] = {
    ParticipantType.INSTRUCTORS: lambda q, r, v, role, roster: role == Role.INSTRUCTOR,
    ParticipantType.OWN_TEAM_MEMBERS: _is_giver_teammate,
    ParticipantType.OWN_TEAM_MEMBERS_INCLUDING_SELF: _is_giver_teammate,
    ParticipantType.RECEIVER: _is_receiver,
    ParticipantType.RECEIVER_TEAM_MEMBERS: lambda q, r, v, role, roster: roster.is_students_in_same_team(
        v, r.recipient_email
    ),
    ParticipantType.STUDENTS: lambda q, r, v, role, roster: role == Role.STUDENT,
}


def is_name_visible(
    question: FeedbackQuestion,
    response: FeedbackResponse,
    viewer_email: str,
    role: Role,
    is_giver_name: bool,
    roster: CourseRoster,
) -> bool:
    """Whether the giver (or recipient) name of a response is shown to a viewer."""
    if response.giver_email == viewer_email:
        return True
    if is_giver_name and response.is_anonymous:
        return False

    show_to = question.show_giver_name_to if is_giver_name else question.show_recipient_name_to
    for participant_type in show_to:
        rule = _NAME_RULES.get(participant_type)
        if rule is not None and rule(question, response, viewer_email, role, roster):
            return True
    return False


# ── Comments ───────────────────────────────────────────────

def is_comment_visible_to(
    question: FeedbackQuestion,
    comment: ResponseComment,
    participant_type: ParticipantType,
) -> bool:
    if comment.is_visibility_following_question:
        return question.is_response_visible_to(participant_type)
    return participant_type in comment.show_comment_to


def is_comment_visible(
    viewer_email: str,
    role: Role,
    response: Optional[FeedbackResponse],
    question: Optional[FeedbackQuestion],
    comment: ResponseComment,
    viewer_student: Optional[Student] = None,
    teammate_emails: frozenset[str] = frozenset(),
    instructor: Optional[Instructor] = None,
) -> bool:
    """Whether a viewer may see a comment on a response they can see."""
    if response is None or question is None:
        return False

    visible = (
        (role == Role.INSTRUCTOR and is_comment_visible_to(question, comment, ParticipantType.INSTRUCTORS))
        or (
            response.recipient_email == viewer_email
            and is_comment_visible_to(question, comment, ParticipantType.RECEIVER)
        )
        or (response.giver_email == viewer_email and is_comment_visible_to(question, comment, ParticipantType.GIVER))
        or comment.author_email == viewer_email
        or (role == Role.STUDENT and is_comment_visible_to(question, comment, ParticipantType.STUDENTS))
    )

    if not visible and role == Role.STUDENT:
        if (
            question.recipient_type == ParticipantType.TEAMS
            and is_comment_visible_to(question, comment, ParticipantType.RECEIVER)
            and viewer_student is not None
            and response.recipient_email == viewer_student.team
        ):
            visible = True
        elif (
            question.giver_type == ParticipantType.TEAMS
            or is_comment_visible_to(question, comment, ParticipantType.OWN_TEAM_MEMBERS)
        ) and response.giver_email in teammate_emails:
            visible = True
        elif (
            is_comment_visible_to(question, comment, ParticipantType.RECEIVER_TEAM_MEMBERS)
            and response.recipient_email in teammate_emails
        ):
            visible = True

    return visible and is_allowed_by_section(instructor, response, question)


def is_comment_author_visible(
    comment: ResponseComment,
    response: FeedbackResponse,
    viewer_email: str,
    roster: CourseRoster,
) -> bool:
    """Whether the comment author's identity is shown to a viewer."""
    if comment.is_visibility_following_question:
        return True
    if comment.author_email == viewer_email:
        return True

    for participant_type in comment.show_giver_name_to or set():
        if participant_type == ParticipantType.GIVER and viewer_email == response.giver_email:
            return True
        if participant_type == ParticipantType.INSTRUCTORS and roster.is_instructor_in_course(viewer_email):
            return True
        if participant_type == ParticipantType.RECEIVER and viewer_email == response.recipient_email:
            return True
        if participant_type == ParticipantType.OWN_TEAM_MEMBERS and roster.is_students_in_same_team(
            viewer_email, response.giver_email
        ):
            return True
        if participant_type == ParticipantType.RECEIVER_TEAM_MEMBERS and roster.is_students_in_same_team(
            viewer_email, response.recipient_email
        ):
            return True
        if participant_type == ParticipantType.STUDENTS and roster.is_student_in_course(viewer_email):
            return True
    return False
