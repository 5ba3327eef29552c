"""
Error types raised by the data layer.

Remote failures are wrapped in ApiError so callers deal with one type
whatever the transport (SQL or HTTP functions). User-facing messages are
French, matching the rest of the product.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

UNKNOWN_ACTION_MESSAGE = "Action inconnue côté serveur."
TABLE_MISSING_MESSAGE = "Base de données non initialisée (table manquante)."
UNAUTHENTICATED_MESSAGE = "Authentification expirée ou manquante."
FORBIDDEN_MESSAGE = "Accès refusé pour ce rôle."


class ApiError(Exception):
    """A failed remote operation, with optional machine code and HTTP-like status."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __repr__(self) -> str:
        return f"ApiError(message={self.message!r}, code={self.code!r}, status={self.status!r})"


class NotFoundError(Exception):
    """Raised when updating or reading an entity that does not exist."""
    pass


class BackendUnavailableError(Exception):
    """Raised by operations that only exist remotely (imports, admin actions)."""
    pass


class InvalidStrengthItemError(ValueError):
    """Raised when a strength session item list fails validation."""
    pass


class InvalidRunTransitionError(Exception):
    """Raised when a strength run is moved out of a terminal state."""
    pass


class PartialAssignmentError(Exception):
    """
    Raised when assigning a session to several groups only partly worked.

    succeeded maps group id -> created assignment id; failed maps group id
    -> the error that group hit. Successful assignments are not rolled back.
    """

    def __init__(self, succeeded: dict[int, int], failed: dict[int, Exception]) -> None:
        self.succeeded = succeeded
        self.failed = failed
        groups = ", ".join(str(group_id) for group_id in failed)
        super().__init__(
            f"Assignation partielle: {len(succeeded)} groupe(s) OK, "
            f"échec pour le(s) groupe(s) {groups}"
        )


def summarize_api_error(error: BaseException, fallback_message: str = "Erreur inconnue") -> ApiError:
    """
    Translate a failure into an ApiError with a user-facing message.

    Known codes and auth statuses get a fixed French message; anything
    else keeps its own message.
    """
    if isinstance(error, ApiError):
        code, status, message = error.code, error.status, error.message
    else:
        code, status, message = None, None, str(error)
    message = message or fallback_message

    if code == "unknown_action":
        message = UNKNOWN_ACTION_MESSAGE
    elif code == "table_missing":
        message = TABLE_MISSING_MESSAGE
    elif status == 401:
        message = UNAUTHENTICATED_MESSAGE
    elif status == 403:
        message = FORBIDDEN_MESSAGE

    return ApiError(message, code=code, status=status)


class ErrorReporter:
    """
    Logs each distinct remote failure once.

    Identity is the (code, status, message) triple. One reporter lives in
    each DataContext, so a fresh context logs again.
    """

    def __init__(self) -> None:
        self._seen: set[tuple[Optional[str], Optional[int], str]] = set()

    def report(self, error: BaseException, fallback_message: str = "Erreur inconnue") -> ApiError:
        summary = summarize_api_error(error, fallback_message)
        key = (summary.code, summary.status, summary.message)
        if key not in self._seen:
            self._seen.add(key)
            logger.error(
                "Remote operation failed",
                extra={
                    "code": summary.code,
                    "status": summary.status,
                    "error": summary.message,
                },
            )
        return summary

    def reset(self) -> None:
        self._seen.clear()
