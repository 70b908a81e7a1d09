# =============================================================================
# Error Taxonomy
# =============================================================================
#
# Every failure the services can report derives from FinSageError. Each
# class carries the HTTP status the API boundary answers with, so route
# handlers never need to map exceptions by hand (see finsage/main.py).
#
#   CredentialMissing    — no API key, or the placeholder key       (401)
#   EmptyInput           — blank query, blank key, empty file        (400)
#   UnsupportedFileType  — neither PDF nor CSV                       (415)
#   FileTooLarge         — upload over the size limit                (413)
#   IngestionFailed      — CSV could not be processed                (422)
#   UnknownError         — catch-all wrapper, numeric code 500       (500)
# =============================================================================

from __future__ import annotations


class FinSageError(Exception):
    """Base class for all domain errors. `code` is exposed to clients."""

    status_code: int = 500

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.status_code

    def __str__(self) -> str:
        return self.message


class CredentialMissing(FinSageError):
    status_code = 401


class EmptyInput(FinSageError):
    status_code = 400


class UnsupportedFileType(FinSageError):
    status_code = 415


class FileTooLarge(FinSageError):
    status_code = 413


class IngestionFailed(FinSageError):
    status_code = 422


class UnknownError(FinSageError):
    status_code = 500

    @classmethod
    def wrap(cls, prefix: str, exc: BaseException) -> UnknownError:
        """Wrap an unexpected exception, keeping its message for the client."""
        detail = str(exc) or "Unknown error occurred"
        return cls(f"{prefix}: {detail}", code=500)
