"""Custom exception hierarchy for results and status queries.

Exception Hierarchy:
    FeedbackResultsException (base, recoverable)
    ├── EntityNotFoundException
    │   ├── SessionNotFoundException
    │   ├── QuestionNotFoundException
    │   └── ParticipantNotFoundException
    ├── ExceedingRangeException
    └── DatabaseException

    InconsistentQueryError (programmer error, not recoverable)
"""


class FeedbackResultsException(Exception):
    """Base exception for all recoverable application errors."""
    pass


class EntityNotFoundException(FeedbackResultsException):
    """Raised when a referenced entity does not exist."""
    pass


class SessionNotFoundException(EntityNotFoundException):
    """Raised when a feedback session is not found."""

    def __init__(self, course_id: str, session_name: str):
        self.course_id = course_id
        self.session_name = session_name
        super().__init__(f"Feedback session '{session_name}' in course {course_id} not found")


class QuestionNotFoundException(EntityNotFoundException):
    """Raised when a feedback question is not found."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Feedback question {question_id} not found")


class ParticipantNotFoundException(EntityNotFoundException):
    """Raised when a viewer is not enrolled in the course."""

    def __init__(self, course_id: str, email: str):
        self.course_id = course_id
        self.email = email
        super().__init__(f"No participant {email} in course {course_id}")


class ExceedingRangeException(FeedbackResultsException):
    """Raised when a bounded result set is larger than the requested range."""

    def __init__(self, message: str = "Number of responses exceeds the limited range"):
        super().__init__(message)


class DatabaseException(FeedbackResultsException):
    """Raised when database operations fail."""

    def __init__(self, operation: str, original_error: Exception):
        self.operation = operation
        self.original_error = original_error
        super().__init__(f"Database {operation} failed: {str(original_error)}")


class InconsistentQueryError(Exception):
    """Raised when a caller builds a query the engine cannot interpret.

    Not part of the FeedbackResultsException tree.
    """
    pass
