"""Error types raised by the encryption helper and the remote CRM client."""

from typing import Any, Optional


class EncryptionError(Exception):
    """Raised when a credential cannot be encrypted or decrypted."""


class RemoteCRMError(Exception):
    """A call to the remote CRM failed (HTTP status, GraphQL errors or transport)."""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[list[Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class RemoteNotFoundError(RemoteCRMError):
    """The remote CRM reported that the target record does not exist."""


class AttachmentUploadError(RemoteCRMError):
    """One step of the three-step attachment upload failed.

    ``step`` is 1 (metadata record), 2 (binary upload) or 3 (path patch).
    """

    def __init__(self, step: int, message: str, status_code: Optional[int] = None, attachment_id: Optional[str] = None):
        super().__init__(f"Attachment upload failed at step {step}: {message}", status_code=status_code)
        self.step = step
        self.attachment_id = attachment_id
