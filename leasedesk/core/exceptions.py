"""Domain error taxonomy shared by the scheduler and signing engines.

Every error carries a stable `code`, an HTTP-equivalent `status_code`, a
message that is safe to show to end users, and whether the caller may retry.
The API layer turns these into discriminated JSON results.
"""

from typing import Any, Optional


class LeaseDeskError(Exception):
    code = "internal_error"
    status_code = 500
    retryable = False
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

class SlotUnavailable(LeaseDeskError):
    code = "slot_unavailable"
    status_code = 409
    retryable = False
    default_message = "Time slot is not available. Please pick a different time."

    def __init__(self, reason: Optional[str] = None, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message, reason=reason)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


class InvalidTransition(LeaseDeskError):
    code = "invalid_transition"
    status_code = 409
    default_message = "This appointment can no longer be changed."


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class NotFound(LeaseDeskError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class AppointmentNotFound(NotFound):
    code = "appointment_not_found"
    default_message = "Appointment not found"


class AvailabilityNotFound(NotFound):
    code = "availability_not_found"
    default_message = "Availability has not been configured"


class TemplateNotFound(NotFound):
    code = "template_not_found"
    default_message = "Lease template not found"


class DocumentNotFound(NotFound):
    code = "document_not_found"
    default_message = "Lease document not found"


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

class SigningIncomplete(LeaseDeskError):
    code = "signing_incomplete"
    status_code = 422
    default_message = "Please complete all required fields and agree to sign electronically."

    def __init__(self, missing_field_ids: Optional[list[str]] = None, consent_missing: bool = False,
                 message: Optional[str] = None):
        self.missing_field_ids = missing_field_ids or []
        self.consent_missing = consent_missing
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing_field_ids"] = self.missing_field_ids
        data["consent_missing"] = self.consent_missing
        return data


class InvalidSignatureImage(LeaseDeskError):
    code = "invalid_signature_image"
    status_code = 422
    default_message = "Invalid signature format. Please try signing again."


class StaleSigningRound(LeaseDeskError):
    code = "stale_signing_round"
    status_code = 409
    retryable = True
    default_message = "This document was updated while you were signing. Please reload and sign again."


class PdfRenderFailure(LeaseDeskError):
    code = "pdf_render_failure"
    status_code = 500
    default_message = "Failed to process signature. Please try again."


class DocumentFetchFailure(LeaseDeskError):
    code = "document_fetch_failure"
    status_code = 502
    retryable = True
    default_message = "Could not load the lease document. Please try again."


class DocumentFetchTimeout(DocumentFetchFailure):
    code = "document_fetch_timeout"
    status_code = 504


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StorageError(LeaseDeskError):
    code = "storage_error"
    status_code = 502
    default_message = "Could not save the signed document. Please try again."


class StorageAuthFailure(StorageError):
    """Credentials rejected by the storage provider. Retrying will not help."""
    code = "storage_auth_failure"
    retryable = False
    default_message = "Document storage is misconfigured. Please contact support."


class StorageUploadFailure(StorageError):
    code = "storage_upload_failure"
    retryable = True


class StorageTimeout(StorageUploadFailure):
    code = "storage_timeout"
    status_code = 504


# ---------------------------------------------------------------------------
# Lease templates
# ---------------------------------------------------------------------------

class InvalidTemplate(LeaseDeskError):
    code = "invalid_template"
    status_code = 422
    default_message = "Lease template is missing required content."
