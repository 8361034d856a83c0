# votebox/errors.py

"""Typed failures raised by the voting core.

Every operation validates its preconditions and raises one of these
instead of letting a storage exception escape. The HTTP layer renders
them through :func:`register_error_handlers`.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class VoteboxError(Exception):
    status_code = 500
    code = "internal_error"
    message = "Internal Server Error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {"error": self.message, "message": self.message, "code": self.code}


class ValidationError(VoteboxError):
    status_code = 400
    code = "validation_error"
    message = "Invalid request"


# Authentication

class AuthError(VoteboxError):
    status_code = 401
    code = "auth_error"
    message = "Authentication required"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid identity number or password"


class InvalidToken(AuthError):
    code = "invalid_token"
    message = "Invalid token"


class ExpiredToken(AuthError):
    code = "expired_token"
    message = "Token has expired"


class MissingToken(AuthError):
    code = "missing_token"
    message = "Token not found"


# Authorization

class ForbiddenError(VoteboxError):
    status_code = 403
    code = "forbidden"
    message = "Forbidden"


class Forbidden(ForbiddenError):
    message = "User does not have admin role"


class AdminCannotVote(ForbiddenError):
    code = "admin_cannot_vote"
    message = "Admin is not allowed to vote"


# Lookups

class NotFoundError(VoteboxError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class VoterNotFound(NotFoundError):
    code = "voter_not_found"
    message = "Voter not found"


class CandidateNotFound(NotFoundError):
    code = "candidate_not_found"
    message = "Candidate not found"


class ElectionNotFound(NotFoundError):
    code = "election_not_found"
    message = "Election not found"


# State conflicts. Statuses follow the public API, not 409.

class ConflictError(VoteboxError):
    status_code = 409
    code = "conflict"
    message = "Conflict"


class AlreadyVoted(ConflictError):
    status_code = 403
    code = "already_voted"
    message = "You have already voted"


class DuplicateVoter(ConflictError):
    status_code = 400
    code = "duplicate_voter"
    message = "A voter with this identity number already exists"


class AlreadyCompleted(ConflictError):
    status_code = 400
    code = "already_completed"
    message = "Election is already completed"


class ElectionCompleted(ConflictError):
    status_code = 400
    code = "election_completed"
    message = "Cannot modify completed elections"


class ElectionActive(ConflictError):
    status_code = 400
    code = "election_active"
    message = "Cannot delete active elections. End them first."


class ElectionNotStartable(ConflictError):
    status_code = 400
    code = "election_not_startable"
    message = "Election cannot be started. Ensure it has candidates and dates are valid."


class ElectionNotCancellable(ConflictError):
    status_code = 400
    code = "election_not_cancellable"
    message = "Only draft or active elections can be cancelled"


class IntegrityConflict(ConflictError):
    status_code = 400
    code = "integrity_conflict"
    message = "Request conflicts with existing data"


# Infrastructure

class StorageUnavailable(VoteboxError):
    status_code = 503
    code = "storage_unavailable"
    message = "Storage temporarily unavailable, retry later"
    retryable = True


class AssistantUnavailable(VoteboxError):
    status_code = 502
    code = "assistant_unavailable"
    message = "Failed to generate response"


class AssistantNotConfigured(AssistantUnavailable):
    status_code = 503
    code = "assistant_not_configured"
    message = "Chat assistant is not configured"


def register_error_handlers(app):
    @app.errorhandler(VoteboxError)
    def handle_votebox_error(error):
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        if isinstance(error, StorageUnavailable):
            response.headers["Retry-After"] = "1"
        return response

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        response = jsonify({"error": error.description, "message": error.description, "code": error.name.lower().replace(" ", "_")})
        response.status_code = error.code
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error: %s", error)
        response = jsonify(VoteboxError().to_dict())
        response.status_code = 500
        return response
