"""Error types raised by DocForge operations.

Every operation-level failure is a DocForgeError. The HTTP layer turns
these into the ``{"success": false, "message": ...}`` envelope; anything
that is not a DocForgeError is left to the web framework.
"""

from typing import Any


class DocForgeError(Exception):
    """Base class for failures delivered to operation callers.

    Attributes:
        message: Human-readable failure message (sent to clients verbatim)
        status_code: HTTP status used when real status codes are enabled
    """

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class IdentityMissing(DocForgeError):
    """The operation was invoked without a caller identity."""

    status_code = 401


class MissingParameter(DocForgeError):
    """A required id, item or query was not supplied."""

    status_code = 400


class InvalidParameter(DocForgeError):
    """A supplied parameter could not be interpreted (e.g. non-numeric page)."""

    status_code = 400


class NotFound(DocForgeError):
    """No document (or collection) matched."""

    status_code = 404


class StoreError(DocForgeError):
    """The document store rejected or failed an operation."""

    status_code = 500


class DuplicateRegistration(DocForgeError):
    """A collection name was registered twice. Logged, never raised to callers."""

    status_code = 409


class ListenerAbort(DocForgeError):
    """A lifecycle listener aborted the pipeline."""

    status_code = 400


class ListenerTimeout(ListenerAbort):
    """Listeners of one emission step did not finish in time."""

    status_code = 504


class ActionDisabled(DocForgeError):
    """The action is not available in the current environment."""

    status_code = 403
