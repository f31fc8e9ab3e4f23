# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Domain error taxonomy.

Storage managers and permission checks raise these; ``main.py`` registers a
single exception handler that turns every ``ParentCircleError`` into a JSON
response ``{"detail": <message>, "code": <code>}`` with the class's status.

Posts and comments use ``NotFoundOrForbidden`` so that a non-owner cannot
tell a missing item from somebody else's item.
"""

from fastapi import status


class ParentCircleError(Exception):
    """Base class for every error that maps onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# -- 401 -------------------------------------------------------------------


class Unauthenticated(ParentCircleError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    message = "Authentication required"


class InvalidCredentials(Unauthenticated):
    code = "invalid_credentials"
    message = "Invalid username or password"


# -- 403 -------------------------------------------------------------------


class Forbidden(ParentCircleError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "You do not have permission to perform this action"


# -- 404 -------------------------------------------------------------------


class NotFound(ParentCircleError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Not found"


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "User not found"


class CohortNotFound(NotFound):
    code = "cohort_not_found"
    message = "Cohort not found"


class MembershipNotFound(NotFound):
    code = "membership_not_found"
    message = "Membership not found"


class BabyNotFound(NotFound):
    code = "baby_not_found"
    message = "Baby not found"


class NotFoundOrForbidden(NotFound):
    code = "not_found_or_forbidden"
    message = "Not found or you do not have permission"


class NotUpvoted(NotFound):
    code = "not_upvoted"
    message = "You have not upvoted this post"


# -- 400 -------------------------------------------------------------------


class ValidationError(ParentCircleError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    message = "Invalid request"


class EmptyContent(ValidationError):
    code = "empty_content"
    message = "Content cannot be empty"


class InvalidRole(ValidationError):
    code = "invalid_role"
    message = "Invalid role"


class InvalidOrExpiredToken(ValidationError):
    code = "invalid_or_expired_token"
    message = "Invalid or expired reset token"


# -- 409 -------------------------------------------------------------------


class Conflict(ParentCircleError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    message = "Resource already exists"


class DuplicateUsername(Conflict):
    code = "duplicate_username"
    message = "Username already exists"


class DuplicateEmail(Conflict):
    code = "duplicate_email"
    message = "Email already registered"


class DuplicateMembership(Conflict):
    code = "duplicate_membership"
    message = "User is already a member of this cohort"


class AlreadyUpvoted(Conflict):
    code = "already_upvoted"
    message = "You have already upvoted this post"


class LastModerator(Conflict):
    code = "last_moderator"
    message = "A cohort must keep at least one moderator"
