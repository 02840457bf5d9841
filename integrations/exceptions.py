# integrations/exceptions.py

from __future__ import annotations


class IntegrationError(Exception):
    """Base exception for external collaborator clients."""


class IntegrationNotConfiguredError(IntegrationError):
    """Credentials or endpoint missing from settings."""


class ExternalServiceError(IntegrationError):
    """
    The collaborator was unreachable, timed out or answered with an error.
    Never absorbed into ledger state; callers decide whether to retry.
    """

    def __init__(self, message: str, *, service: str = "", status_code: int | None = None):
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class InvalidTaxIdError(IntegrationError):
    """Malformed CUIT (length or check digit); no call is made."""


class TaxpayerNotFoundError(IntegrationError):
    """The tax authority has no record for a well-formed CUIT."""
