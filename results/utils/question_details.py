"""Per question-type rendering of CSV export sections."""
import logging
from collections import Counter

from results.models.bundle import ResultsBundle
from shared.models.domain import FeedbackQuestion, FeedbackResponse, QuestionType
from shared.utils.constants import NO_RESPONSE_TEXT

logger = logging.getLogger(__name__)

DETAILED_RESPONSES_HEADER = [
    "Team",
    "Giver's Full Name",
    "Giver's Last Name",
    "Giver's Email",
    "Recipient's Team",
    "Recipient's Full Name",
    "Recipient's Last Name",
    "Recipient's Email",
    "Feedback",
]


def remove_extra_space(value: str) -> str:
    return " ".join(value.split())


class QuestionDetails:
    """Free-text questions: one row per response and no statistics."""

    def __init__(self, question: FeedbackQuestion):
        self.question = question

    def get_csv_detailed_responses_header(self) -> list[str]:
        return list(DETAILED_RESPONSES_HEADER)

    def get_csv_detailed_responses_row(self, bundle: ResultsBundle, response: FeedbackResponse) -> list[str]:
        return [
            bundle.get_giver_team_name(response),
            remove_extra_space(bundle.get_giver_name(response)),
            remove_extra_space(bundle.get_giver_last_name(response)),
            bundle.get_giver_displayable_email(response),
            bundle.get_recipient_team_name(response),
            remove_extra_space(bundle.get_recipient_name(response)),
            remove_extra_space(bundle.get_recipient_last_name(response)),
            bundle.get_recipient_displayable_email(response),
            self.format_answer(response),
        ]

    def format_answer(self, response: FeedbackResponse) -> str:
        return response.answer

    def get_statistics_rows(self, bundle: ResultsBundle, responses: list[FeedbackResponse]) -> list[list[str]]:
        return []

    def should_show_no_response_text(self) -> bool:
        return self.question.show_missing_responses

    def get_no_response_text(self, giver: str, recipient: str) -> str:
        return NO_RESPONSE_TEXT


class McqQuestionDetails(QuestionDetails):
    """Multiple choice: choice counts and percentages."""

    def get_statistics_rows(self, bundle: ResultsBundle, responses: list[FeedbackResponse]) -> list[list[str]]:
        if not responses:
            return []
        counts = Counter(r.answer for r in responses)
        choices = list(self.question.options)
        choices.extend(sorted(answer for answer in counts if answer not in self.question.options))

        total = len(responses)
        rows = [["Choice", "Response Count", "Percentage"]]
        for choice in choices:
            count = counts.get(choice, 0)
            rows.append([choice, str(count), f"{count * 100 / total:.2f}%"])
        return rows


class NumScaleQuestionDetails(QuestionDetails):
    """Numerical scale: average, minimum and maximum per recipient."""

    def get_statistics_rows(self, bundle: ResultsBundle, responses: list[FeedbackResponse]) -> list[list[str]]:
        per_recipient: dict[str, list[float]] = {}
        first_response: dict[str, FeedbackResponse] = {}
        for response in responses:
            try:
                value = float(response.answer)
            except ValueError:
                logger.warning(f"Skipping non-numeric answer for response {response.id}")
                continue
            per_recipient.setdefault(response.recipient_email, []).append(value)
            first_response.setdefault(response.recipient_email, response)

        if not per_recipient:
            return []

        rows = [["Team", "Recipient", "Average", "Minimum", "Maximum"]]
        for recipient in sorted(per_recipient):
            values = per_recipient[recipient]
            response = first_response[recipient]
            rows.append([
                bundle.get_recipient_team_name(response),
                remove_extra_space(bundle.get_recipient_name(response)),
                f"{sum(values) / len(values):.2f}",
                f"{min(values):.2f}",
                f"{max(values):.2f}",
            ])
        return rows


_DETAILS_BY_TYPE: dict[QuestionType, type[QuestionDetails]] = {
    QuestionType.TEXT: QuestionDetails,
    QuestionType.MCQ: McqQuestionDetails,
    QuestionType.NUMSCALE: NumScaleQuestionDetails,
}


def get_question_details(question: FeedbackQuestion) -> QuestionDetails:
    return _DETAILS_BY_TYPE[question.question_type](question)
