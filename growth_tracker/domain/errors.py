"""Error taxonomy shared by the assessment manager, store and API layer."""

from __future__ import annotations


class GrowthTrackerError(Exception):
    """Base class for domain errors."""


class InvalidArgument(GrowthTrackerError):
    """Raised for an unrecognised area identifier or a malformed score/notes map."""


class Unauthenticated(GrowthTrackerError):
    """Raised when a mutating operation needs an identity and none is signed in."""


class StoreError(GrowthTrackerError):
    """Base class for assessment store failures."""


class StoreUnavailable(StoreError):
    """Raised when the backing store cannot complete a request."""


class PermissionDenied(StoreError):
    """Raised when a user touches a document they do not own."""
