"""Error taxonomy shared by the sync, lifecycle and dispatch layers.

Each error carries a stable ``code`` that the tool dispatcher forwards to the
model, so it can react to the failure inside the same conversation.
"""


class DraftSyncError(Exception):
    """Base class for errors surfaced as structured tool results."""

    code = "TOOL_FAILED"
    remediation: str | None = None


class StorageError(DraftSyncError):
    """Remote storage call failed.

    ``status_code`` and ``provider_code`` are kept raw so that lock detection
    can be done in one place (see ``sync.locks``).
    """

    code = "STORAGE_FAILED"

    def __init__(
        self, message: str, *, status_code: int | None = None, provider_code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider_code = provider_code


class RemoteUnavailable(DraftSyncError):
    """Remote download failed and no local copy exists to fall back on."""

    code = "REMOTE_UNAVAILABLE"


class DocumentLocked(DraftSyncError):
    """Remote copy is open for editing elsewhere; upload retries exhausted."""

    code = "DOCUMENT_LOCKED"
    remediation = "Close the document wherever it is open and retry."

    def __init__(self, filename: str, attempts: int) -> None:
        super().__init__(
            f"The document '{filename}' is locked because it is open for editing "
            f"(still locked after {attempts} attempts). Close the document and retry."
        )
        self.filename = filename
        self.attempts = attempts


class FileNotFoundInOutput(DraftSyncError):
    """Expected local artifact is missing (after a materialization wait)."""

    code = "FILE_NOT_FOUND"


class DraftNotFound(DraftSyncError):
    """No draft with the given id."""

    code = "DRAFT_NOT_FOUND"

    def __init__(self, draft_id: int) -> None:
        super().__init__(f"Draft {draft_id} not found")
        self.draft_id = draft_id


class UnknownOperation(DraftSyncError):
    """Model requested a tool name that is not in the catalog."""

    code = "UNKNOWN_OPERATION"
    remediation = "Call one of the declared tools."


class MalformedToolArguments(DraftSyncError):
    """Tool arguments could not be parsed or validated."""

    code = "MALFORMED_ARGUMENTS"
    remediation = "Fix the arguments to match the tool's parameter schema and call it again."


class RendererError(DraftSyncError):
    """External renderer call failed."""

    code = "RENDERER_FAILED"


class LLMUnavailable(DraftSyncError):
    """Language-model call failed; fatal to the current request."""

    code = "LLM_UNAVAILABLE"
