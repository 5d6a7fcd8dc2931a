"""Application constants - all sentinels and magic strings centralized."""

# Participant identifiers
GENERAL_QUESTION = "%GENERAL%"  # Recipient of a response with no specific recipient
TEAM_OF_EMAIL_OWNER = "'s Team"  # Suffix for the team of a TEAMS-type giver

# Display sentinels
ANONYMOUS = "Anonymous"
USER_IS_NOBODY = "Nobody specific (For general class feedback)"
USER_IS_MISSING = "(Missing user)"
USER_TEAM_FOR_INSTRUCTOR = "Instructors"
NO_RESPONSE_TEXT = "No Response"

# Instructor privileges
PRIVILEGE_VIEW_SESSION_IN_SECTIONS = "canviewsessioninsection"
PRIVILEGE_SUBMIT_SESSION_IN_SECTIONS = "cansubmitsessioninsection"
PRIVILEGE_MODIFY_SESSION_COMMENT_IN_SECTIONS = "canmodifysessioncommentinsection"
ALL_SECTION_PRIVILEGES = (
    PRIVILEGE_VIEW_SESSION_IN_SECTIONS,
    PRIVILEGE_SUBMIT_SESSION_IN_SECTIONS,
    PRIVILEGE_MODIFY_SESSION_COMMENT_IN_SECTIONS,
)

# Results queries
QUESTION_ID_FOR_RESPONSE_RATE = "-1"  # Pseudo question id: only the response status
DEFAULT_CSV_EXPORT_RANGE = 10000  # Response cap for whole-session exports

# Section used for participants who are not in any section
DEFAULT_SECTION = "None"
