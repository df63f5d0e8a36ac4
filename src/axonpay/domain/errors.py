"""Domain-specific exceptions."""

from __future__ import annotations


class SnapNotFoundError(Exception):
    """Raised when a snap lookup fails."""


class SnapAlreadyExistsError(ValueError):
    """Raised when a snap is created with an id that is already taken."""


class SnapNotActiveError(ValueError):
    """Raised when an operation requires an active snap."""


class SnapPermissionError(ValueError):
    """Raised when someone other than the sender tries to manage a snap."""


class SnapContentionError(Exception):
    """Raised when a snap stays contended past the compare-and-set retry limit."""


class MerchantNotFoundError(Exception):
    """Raised when a merchant prefix is not present in the directory."""


class MerchantAlreadyExistsError(ValueError):
    """Raised when a merchant prefix is registered twice."""


class InvalidPayloadError(ValueError):
    """Raised when a scanned payload cannot be routed to any payment action."""


class TransferRejectedError(Exception):
    """The transfer service definitively refused the transfer (never submitted)."""


class TransferOutcomeUnknownError(Exception):
    """The transfer may have been submitted but its outcome is not known."""
