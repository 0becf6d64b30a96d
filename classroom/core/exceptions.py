from fastapi import status


class ClassroomError(Exception):
    """Base class for failures scoped to a single user interaction."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_detail = "Request failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotAuthenticated(ClassroomError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"
    default_detail = "Could not validate credentials"


class NotAuthorized(ClassroomError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    default_detail = "You are not allowed to perform this action"


class NotFound(ClassroomError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found"


class ValidationFailed(ClassroomError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_failed"
    default_detail = "Invalid input"


class Conflict(ClassroomError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Resource already exists"


class AlreadyEnrolled(Conflict):
    code = "already_enrolled"
    default_detail = "You are already enrolled in this class"


class SubmissionClosed(ClassroomError):
    status_code = status.HTTP_409_CONFLICT
    code = "submission_closed"
    default_detail = "Assignment closed: this assignment is past due and no longer accepts submissions."


class SubmissionLocked(ClassroomError):
    status_code = status.HTTP_409_CONFLICT
    code = "submission_locked"
    default_detail = "This submission has been graded and can no longer be changed"


class StorageError(ClassroomError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "storage_error"
    default_detail = "Object storage request failed"
