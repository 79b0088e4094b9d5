"""Classification of remote-storage failures as document-lock conflicts."""

from draftsync.app.errors import StorageError

# Graph returns 423 Locked for files open in an editing session; some
# endpoints report it as a 409 with one of these error codes instead.
LOCKED_STATUS_CODES = frozenset({423})
LOCKED_PROVIDER_CODES = frozenset({"resourcelocked", "locked"})
LOCKED_MESSAGE_MARKERS = ("locked", "resourcelocked", "checked out")


def is_locked_error(exc: BaseException) -> bool:
    """Return True if ``exc`` means the remote document is open for editing elsewhere.

    Status code and provider code are checked first; the message substring
    check only applies when neither is available.
    """
    if isinstance(exc, StorageError):
        if exc.status_code in LOCKED_STATUS_CODES:
            return True
        if exc.provider_code and exc.provider_code.lower() in LOCKED_PROVIDER_CODES:
            return True
        if exc.status_code is not None or exc.provider_code is not None:
            return False

    message = str(exc).lower()
    return any(marker in message for marker in LOCKED_MESSAGE_MARKERS)
