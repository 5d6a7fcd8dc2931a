"""CSV export of session results."""

import csv
import io
import logging
import os
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from config import get_settings
from results.models.bundle import ResultsBundle
from results.services.results_service import FeedbackResultsService
from results.utils.question_details import QuestionDetails, get_question_details, remove_extra_space
from shared.models.domain import FeedbackQuestion, FeedbackResponse, Role, SectionFilter
from shared.utils.exceptions import ExceedingRangeException

logger = logging.getLogger("results.csv_export_service")


class CsvExportService:
    """
    Renders a results bundle as CSV.

    Responses are written in giver, recipient, question number order. For
    every giver the recipients they were expected to answer but did not
    are written as placeholder rows, followed by the givers who gave no
    response at all.
    """

    def __init__(self, db: Optional[DBSession] = None):
        self.db = db
        self.settings = get_settings()

    # ── Public API ──────────────────────────────────────────────

    def export_session_results_as_csv(
        self,
        course_id: str,
        session_name: str,
        viewer_email: str,
        section: Optional[str] = None,
    ) -> str:
        """
        Build an instructor's results for a session and export them.

        The whole session is bounded by the configured export range; a single
        section is exported unbounded.

        Raises:
            SessionNotFoundException: If the session does not exist
            ExceedingRangeException: If the session has more responses than the range
        """
        if self.db is None:
            raise ValueError("A database session is required to load session results")

        limit = self.settings.csv_export_range if section is None else None
        bundle = FeedbackResultsService(self.db).build_results_for_section_within_range(
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
        return self.export_results_as_csv(bundle, section)

    def export_results_as_csv(self, bundle: ResultsBundle, section: Optional[str] = None) -> str:
        """
        Export a complete results bundle.

        Raises:
            ExceedingRangeException: If the bundle was truncated
        """
        if not bundle.complete:
            logger.warning(
                f"Refusing to export incomplete results for "
                f"{bundle.session.course_id}/{bundle.session.session_name}"
            )
            raise ExceedingRangeException()

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator=os.linesep)

        writer.writerow(["Course", bundle.session.course_id])
        writer.writerow(["Session Name", bundle.session.session_name])
        if section is not None:
            writer.writerow(["Section Name", section])
        writer.writerow([])
        writer.writerow([])

        sorted_responses = bundle.get_responses_sorted_by_giver_recipient_question()
        for question, responses in bundle.get_question_response_map(sorted_responses):
            self._write_question(writer, bundle, question, responses)

        logger.info(
            f"Exported {len(sorted_responses)} responses across {len(bundle.questions)} questions "
            f"for {bundle.session.course_id}/{bundle.session.session_name}"
        )
        return buffer.getvalue()

    # ── Private helpers ─────────────────────────────────────────

    def _write_question(
        self,
        writer,
        bundle: ResultsBundle,
        question: FeedbackQuestion,
        responses: list[FeedbackResponse],
    ) -> None:
        details = get_question_details(question)
        roster = bundle.roster

        writer.writerow([f"Question {question.question_number}", question.question_text])
        writer.writerow([])

        statistics = details.get_statistics_rows(bundle, responses)
        if statistics:
            writer.writerow(["Summary Statistics"])
            writer.writerows(statistics)
            writer.writerow([])

        writer.writerow(details.get_csv_detailed_responses_header())

        possible_givers = bundle.get_possible_givers(question)
        possible_recipients: list[str] = []
        prev_giver = ""

        for response in responses:
            # Anonymous participants cannot be matched against the named lists
            if not bundle.is_recipient_visible(response) or not bundle.is_giver_visible(response):
                self._write_missing_rows(writer, bundle, details, possible_recipients, prev_giver)
                possible_givers.clear()
                possible_recipients = []
                prev_giver = ""
                writer.writerow(details.get_csv_detailed_responses_row(bundle, response))
                continue

            giver = roster.canonical_identifier(question.giver_type, response.giver_email)
            _discard(possible_givers, giver)

            if giver != prev_giver:
                self._write_missing_rows(writer, bundle, details, possible_recipients, prev_giver)
                possible_recipients = bundle.get_possible_recipients(question, giver)

            recipient = roster.canonical_identifier(question.resolved_recipient_type, response.recipient_email)
            _discard(possible_recipients, recipient)
            prev_giver = giver

            writer.writerow(details.get_csv_detailed_responses_row(bundle, response))

        self._write_missing_rows(writer, bundle, details, possible_recipients, prev_giver)
        _discard(possible_givers, prev_giver)
        for giver in possible_givers:
            self._write_missing_rows(
                writer, bundle, details, bundle.get_possible_recipients(question, giver), giver
            )

        writer.writerow([])
        writer.writerow([])

    def _write_missing_rows(
        self,
        writer,
        bundle: ResultsBundle,
        details: QuestionDetails,
        possible_recipients: list[str],
        giver: str,
    ) -> None:
        if not details.should_show_no_response_text():
            return
        roster = bundle.roster
        for recipient in possible_recipients:
            writer.writerow([
                roster.get_team_name(giver),
                remove_extra_space(roster.get_full_name(giver)),
                remove_extra_space(roster.get_last_name(giver)),
                roster.get_displayable_email(giver),
                roster.get_team_name(recipient),
                remove_extra_space(roster.get_full_name(recipient)),
                remove_extra_space(roster.get_last_name(recipient)),
                roster.get_displayable_email(recipient),
                details.get_no_response_text(giver, recipient),
            ])


def _discard(identifiers: list[str], identifier: str) -> None:
    if identifier in identifiers:
        identifiers.remove(identifier)
