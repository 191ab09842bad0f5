"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. ``field`` and ``value`` name the
    offending input where there is one, so callers can point at it.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidLineItemError(ValidationError):
    """Line item with a negative price, bad quantity or missing description."""


class InvalidPartyDataError(ValidationError):
    """Inconsistent seller or customer data."""


class CurrencyMismatchError(ValidationError):
    """Arithmetic between amounts of different currencies."""


class UnknownJurisdictionError(ValidationError):
    """Country, currency or rate not present in the jurisdiction tables."""


class EmptyReportError(ValidationError):
    """Report has nothing to submit for its period."""


class InvalidTransitionError(ValidationError):
    """Status change not allowed from the current status."""


class InvoiceLockedError(ValidationError):
    """Invoice lines can only change while the invoice is a draft."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as a concurrent submission."""


class SubmissionInProgressError(ConflictError):
    """Another submission of the same report is running."""


class NotEntitledError(DomainError):
    """Caller lacks the capability required for the operation."""


class ExternalFailure(DomainError):
    """An external collaborator failed or was unreachable."""


class FilingUnavailableError(ExternalFailure):
    """Filing collaborator could not be reached."""


class JurisdictionDataUnavailableError(ExternalFailure):
    """Jurisdiction data source could not be reached."""


GENERIC_FILING_FAILURE = "The tax authority rejected the report without a message."


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def report_not_found(report_id: int) -> str:
    """Return message for missing tax report."""
    return f"Tax report {report_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def currency_mismatch(left: str, right: str) -> str:
    """Return message for arithmetic across currencies."""
    return f"Cannot combine amounts in {left} and {right}"


def invalid_transition(entity: str, current: str, target: str) -> str:
    """Return message for a disallowed status change."""
    return f"{entity} cannot move from '{current}' to '{target}'"


def submission_in_progress(report_id: int) -> str:
    """Return message when a report is already being submitted."""
    return (
        f"Tax report {report_id} is already being submitted. "
        "Wait for it to finish and check its status before trying again."
    )


def not_entitled(user: Optional[str], capability: str) -> str:
    """Return message when a user lacks a capability."""
    who = f"User '{user}'" if user else "Anonymous user"
    return f"{who} is not entitled to '{capability}'"
