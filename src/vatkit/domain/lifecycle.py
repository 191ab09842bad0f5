"""Status transition tables for tax reports and invoices."""

from vatkit.domain.entities import InvoiceStatus, ReportStatus
from vatkit.domain.errors import InvalidTransitionError, invalid_transition

# Draft and Previewed may be re-entered. Test submissions are recorded on the
# report without a status change, so they have no entry here.
REPORT_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.DRAFT: frozenset(
        {ReportStatus.DRAFT, ReportStatus.PREVIEWED, ReportStatus.SUBMITTED}
    ),
    ReportStatus.PREVIEWED: frozenset(
        {ReportStatus.DRAFT, ReportStatus.PREVIEWED, ReportStatus.SUBMITTED}
    ),
    ReportStatus.SUBMITTED: frozenset({ReportStatus.ACCEPTED, ReportStatus.REJECTED}),
    ReportStatus.REJECTED: frozenset({ReportStatus.DRAFT}),
    ReportStatus.ACCEPTED: frozenset(),
}

SUBMITTABLE_STATUSES = frozenset({ReportStatus.DRAFT, ReportStatus.PREVIEWED})
# Rejected reports are back with the user and count as open
FILED_STATUSES = frozenset({ReportStatus.SUBMITTED, ReportStatus.ACCEPTED})

INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition_report(current: ReportStatus, target: ReportStatus) -> bool:
    return ReportStatus(target) in REPORT_TRANSITIONS[ReportStatus(current)]


def check_report_transition(current: ReportStatus, target: ReportStatus) -> ReportStatus:
    """Return ``target`` if the move is allowed.

    Raises:
        InvalidTransitionError: If ``current`` cannot move to ``target``
    """
    current = ReportStatus(current)
    target = ReportStatus(target)
    if not can_transition_report(current, target):
        raise InvalidTransitionError(
            invalid_transition("Tax report", current.value, target.value),
            field="status",
            value=current.value,
        )
    return target


def check_filing_outcome(current: ReportStatus, rejected: bool) -> ReportStatus:
    """Status a report lands in once the authority has answered a filing.

    A filing always passes through SUBMITTED; a rejection then moves it on to
    REJECTED. Both steps are checked against the table.
    """
    status = check_report_transition(current, ReportStatus.SUBMITTED)
    if rejected:
        status = check_report_transition(status, ReportStatus.REJECTED)
    return status


def is_terminal_report_status(status: ReportStatus) -> bool:
    return not REPORT_TRANSITIONS[ReportStatus(status)]


def check_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> InvoiceStatus:
    """Return ``target`` if the invoice may move there.

    Raises:
        InvalidTransitionError: If ``current`` cannot move to ``target``
    """
    current = InvoiceStatus(current)
    target = InvoiceStatus(target)
    if target not in INVOICE_TRANSITIONS[current]:
        raise InvalidTransitionError(
            invalid_transition("Invoice", current.value, target.value),
            field="status",
            value=current.value,
        )
    return target
