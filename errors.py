"""Errors raised by the bill maker and shown to the user by the app."""


class GSTBillError(Exception):
    """Base class for handled, non-fatal errors."""


class InvalidDocumentError(GSTBillError):
    """An imported or stored document is not a valid bill maker state."""


class InvalidLicenseKeyError(GSTBillError):
    """The license key does not match the offline key format."""


class ProFeatureLockedError(GSTBillError):
    """A Pro-only feature was used without unlocking Pro."""


class ShareUnavailableError(GSTBillError):
    """The requested share channel is not supported."""
