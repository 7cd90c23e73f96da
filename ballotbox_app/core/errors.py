"""Error taxonomy shared by the election services and the JSON API.

Every error carries the HTTP status it maps to and a stable machine-readable
``code``. Messages of 4xx errors are shown to callers verbatim; internal
errors are replaced with a generic message by the API layer.
"""

from __future__ import annotations


class BallotboxError(Exception):
    status_code: int = 500
    code: str = "error"
    default_message: str = "Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class ValidationError(BallotboxError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class MissingFieldsError(ValidationError):
    code = "missing_fields"
    default_message = "Required fields are missing"


class InvalidActionError(ValidationError):
    code = "invalid_action"
    default_message = "Invalid action"


class ConfirmationRequiredError(ValidationError):
    code = "confirmation_required"
    default_message = "Confirmation required"


class MissingPresidentError(ValidationError):
    code = "missing_president"
    default_message = "A president must be selected"


class TooManyMembersError(ValidationError):
    code = "too_many_members"
    default_message = "Up to 10 additional members can be selected"


class MissingEthicsAnswerError(ValidationError):
    code = "missing_ethics_answer"
    default_message = "The Code of Ethics question must be answered"


class UnknownCandidateError(ValidationError):
    code = "unknown_candidate"
    default_message = "Invalid candidates"


class CandidateHasVotesError(ValidationError):
    code = "candidate_has_votes"
    default_message = "Candidates with recorded votes cannot be deleted; reset the election first"


class AuthError(BallotboxError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidSessionError(AuthError):
    code = "invalid_session"
    default_message = "Invalid or expired session"


class ForbiddenError(BallotboxError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotEligibleError(ForbiddenError):
    code = "not_eligible"
    default_message = "Not eligible"


class ElectionClosedError(ForbiddenError):
    code = "election_closed"
    default_message = "Voting is not open"


class ElectionOpenError(ForbiddenError):
    code = "election_open"
    default_message = "Results cannot be revealed while voting is open"


class AlreadyVotedError(ForbiddenError):
    code = "already_voted"
    default_message = "You have already voted"


class ResultsHiddenError(ForbiddenError):
    code = "results_hidden"
    default_message = "Results have not been revealed yet"


class NotFoundError(BallotboxError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class RateLimitedError(BallotboxError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many attempts. Please try again later."


class ServiceUnavailableError(BallotboxError):
    status_code = 503
    code = "unavailable"
    default_message = "The service is temporarily unavailable. Please try again."


class InternalError(BallotboxError):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"
