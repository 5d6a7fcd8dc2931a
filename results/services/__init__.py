"""Results feature services."""
from results.services.results_service import FeedbackResultsService
from results.services.response_status_service import ResponseStatusService
from results.services.csv_export_service import CsvExportService
from results.services.session_details_service import SessionDetailsService
from results.services.respondent_service import RespondentService

__all__ = [
    "FeedbackResultsService",
    "ResponseStatusService",
    "CsvExportService",
    "SessionDetailsService",
    "RespondentService",
]
