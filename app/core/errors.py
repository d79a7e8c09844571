"""Error reasons and exceptions shared by the control plane services."""

from enum import StrEnum


class ErrorReason(StrEnum):
    INVALID_SUBDOMAIN = "invalid_subdomain"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    RESERVED_OR_TAKEN = "reserved_or_taken"
    IDENTITY_CREATION_FAILED = "identity_creation_failed"
    TENANT_CREATION_FAILED = "tenant_creation_failed"
    DEPENDENT_RESOURCE_FAILED = "dependent_resource_failed"
    SIGNUP_REQUEST_FAILED = "signup_request_failed"
    STORE_UNAVAILABLE = "store_unavailable"


class ControlPlaneError(Exception):
    """Base class for errors carrying an ErrorReason."""

    reason: ErrorReason = ErrorReason.TENANT_CREATION_FAILED

    def __init__(self, message: str, reason: ErrorReason | None = None) -> None:
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class ProvisioningError(ControlPlaneError):
    """Raised by the store when the atomic tenant provisioning is rolled back."""


class IdentityError(ControlPlaneError):
    """Raised by an identity provider when a user cannot be created or removed."""

    reason = ErrorReason.IDENTITY_CREATION_FAILED


class DecryptionError(Exception):
    """Raised when an encrypted envelope cannot be opened."""
