"""
Database initialization, seeding, and results utilities.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from config import get_settings, validate_required_settings
from database import get_db_manager
from logging_config import setup_logging
from results.services import (
    CsvExportService,
    FeedbackResultsService,
    RespondentService,
    ResponseStatusService,
)
from shared.models.domain import (
    FeedbackQuestion,
    FeedbackResponse,
    FeedbackSession,
    Instructor,
    ResponseComment,
    Role,
    SectionFilter,
    Student,
)
from shared.repositories import FeedbackRepository, RosterRepository


def migrate():
    """Create all database tables."""
    manager = get_db_manager()
    if not manager.health_check():
        print("Error: database is not reachable")
        return
    print("Creating database tables...")
    created = manager.create_tables()
    print(f"✓ Tables created: {', '.join(created) or 'already up to date'}")


def seed(seed_file_path: str):
    """
    Load a course from a JSON file.

    The file holds lists under "students", "instructors", "sessions",
    "questions", "responses" and "comments". Respondent sets are rebuilt
    from the loaded responses.
    """
    print(f"Loading course data from {seed_file_path}...")

    path = Path(seed_file_path)
    if not path.exists():
        print(f"Error: Seed file not found: {seed_file_path}")
        return

    with open(path, "r") as f:
        data = json.load(f)

    with get_db_manager().session_scope() as db:
        roster_repo = RosterRepository(db)
        feedback_repo = FeedbackRepository(db)

        for item in data.get("students", []):
            roster_repo.create_student(Student.model_validate(item))
        for item in data.get("instructors", []):
            roster_repo.create_instructor(Instructor.model_validate(item))
        sessions = [FeedbackSession.model_validate(item) for item in data.get("sessions", [])]
        for session in sessions:
            feedback_repo.create_session(session)
        for item in data.get("questions", []):
            feedback_repo.create_question(FeedbackQuestion.model_validate(item))
        for item in data.get("responses", []):
            feedback_repo.create_response(FeedbackResponse.model_validate(item))
        for item in data.get("comments", []):
            feedback_repo.create_comment(ResponseComment.model_validate(item))

        respondents = RespondentService(db)
        for session in sessions:
            respondents.update_respondents_for_session(session.course_id, session.session_name)

    print(
        f"✓ Loaded {len(data.get('students', []))} students, "
        f"{len(sessions)} sessions, {len(data.get('responses', []))} responses"
    )


def export_csv(course_id: str, session_name: str, viewer_email: str,
               section: Optional[str] = None, output: Optional[str] = None):
    """Export an instructor's view of session results as CSV."""
    with get_db_manager().session_scope() as db:
        csv_text = CsvExportService(db).export_session_results_as_csv(
            course_id, session_name, viewer_email, section
        )

    if output:
        Path(output).write_text(csv_text, encoding="utf-8")
        print(f"✓ Wrote {output}")
    else:
        sys.stdout.write(csv_text)


def show_status(course_id: str, session_name: str):
    """Print who has not responded to a session."""
    with get_db_manager().session_scope() as db:
        status = ResponseStatusService(db).build_response_status(course_id, session_name)

    teams = status.get_teams_with_instructor_team()
    pending = status.get_participants_who_did_not_respond()
    print(f"{len(pending)} participants have not responded:")
    for email in pending:
        print(f"  {teams.get(email, '')}\t{status.email_name_table[email]}\t{email}")


def preview(course_id: str, session_name: str, viewer_email: str, section: Optional[str] = None):
    """Print per-question response counts, bounded by the preview range."""
    limit = get_settings().results_page_range
    with get_db_manager().session_scope() as db:
        bundle = FeedbackResultsService(db).build_results_for_section_within_range(
            course_id,
            session_name,
            viewer_email,
            Role.INSTRUCTOR,
            SectionFilter.IN_SECTION,
            section=section,
            limit=limit,
            include_response_status=False,
            include_comments=False,
        )

    if not bundle.complete:
        print(f"More than {limit} responses; use --export-csv for the full results")
    for question, responses in bundle.get_question_response_map():
        print(f"  Q{question.question_number}\t{len(responses)} responses\t{question.question_text}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Feedback results CLI")
    parser.add_argument("--migrate", action="store_true", help="Create database tables")
    parser.add_argument("--seed", type=str, help="Seed a course from a JSON file")
    parser.add_argument("--export-csv", action="store_true", help="Export session results as CSV")
    parser.add_argument("--status", action="store_true", help="Show who has not responded")
    parser.add_argument("--preview", action="store_true", help="Show per-question response counts")
    parser.add_argument("--course", type=str, help="Course id")
    parser.add_argument("--session", type=str, help="Feedback session name")
    parser.add_argument("--viewer", type=str, help="Instructor email for --export-csv and --preview")
    parser.add_argument("--section", type=str, default=None, help="Restrict --export-csv or --preview to a section")
    parser.add_argument("--output", type=str, default=None, help="Write --export-csv to a file")

    args = parser.parse_args(argv)
    setup_logging()
    validate_required_settings()

    if args.migrate:
        migrate()
    elif args.seed:
        seed(args.seed)
    elif args.export_csv:
        if not (args.course and args.session and args.viewer):
            parser.error("--export-csv requires --course, --session and --viewer")
        export_csv(args.course, args.session, args.viewer, args.section, args.output)
    elif args.status:
        if not (args.course and args.session):
            parser.error("--status requires --course and --session")
        show_status(args.course, args.session)
    elif args.preview:
        if not (args.course and args.session and args.viewer):
            parser.error("--preview requires --course, --session and --viewer")
        preview(args.course, args.session, args.viewer, args.section)
    else:
        print("Usage:")
        print("  python cli.py --migrate                     # Create tables")
        print("  python cli.py --seed <json_file>            # Load a course")
        print("  python cli.py --export-csv --course C --session S --viewer EMAIL [--section X] [--output F]")
        print("  python cli.py --status --course C --session S")
        print("  python cli.py --preview --course C --session S --viewer EMAIL [--section X]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
