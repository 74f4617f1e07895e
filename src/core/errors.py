"""Exception hierarchy for the job board engine.

Every failure here is an expected, user-facing condition. Storage errors that
are not mapped below propagate as raised by sqlite3.
"""


class JobBoardError(Exception):
    """Base class for all job board errors."""


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(JobBoardError):
    """A referenced entity does not exist."""


class JobNotFound(NotFoundError):
    def __init__(self, job_id: int) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class CandidateNotFound(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ApplicationNotFound(NotFoundError):
    def __init__(self, application_id: int) -> None:
        super().__init__(f"Application not found: {application_id}")
        self.application_id = application_id


class OrganizationNotFound(NotFoundError):
    def __init__(self, organization_id: int) -> None:
        super().__init__(f"Organization not found: {organization_id}")
        self.organization_id = organization_id


# ---------------------------------------------------------------------------
# Validation conflicts
# ---------------------------------------------------------------------------


class ValidationConflict(JobBoardError):
    """The request conflicts with the current state of the store."""


class DuplicateApplication(ValidationConflict):
    def __init__(self, job_id: int, user_id: int) -> None:
        super().__init__(
            f"Application already exists for job {job_id} and user {user_id}",
        )
        self.job_id = job_id
        self.user_id = user_id


class PathNotAllowed(ValidationConflict):
    def __init__(self, path: str, allowed: list[str]) -> None:
        super().__init__(
            f"Application path not allowed: '{path}' (allowed: {', '.join(allowed)})",
        )
        self.path = path
        self.allowed = allowed


class VendorInvalid(ValidationConflict):
    def __init__(self, vendor_id: int | None, reason: str = "") -> None:
        msg = (
            f"Vendor not found or inactive: {vendor_id}"
            if vendor_id is not None
            else "Vendor not found or inactive: no vendor supplied"
        )
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
        self.vendor_id = vendor_id


class EmailTaken(ValidationConflict):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}")
        self.email = email


class SlugTaken(ValidationConflict):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Organization slug already in use: {slug}")
        self.slug = slug


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class NotEligibleForTransition(JobBoardError):
    """A job requisition cannot move to the requested lifecycle state."""

    def __init__(self, job_id: int, reason: str) -> None:
        super().__init__(f"Job {job_id} cannot transition: {reason}")
        self.job_id = job_id
        self.reason = reason
